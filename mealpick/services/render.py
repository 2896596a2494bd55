from html import escape

from ..models import Recipe


def render_recipe_card(recipe: Recipe) -> str:
    """HTML fragment the web client drops into the recommendation panel."""
    parts = ['<div class="rec-info-header">']
    for icon, label, value in (
        ("⏱️", "Prep", recipe.prep_time),
        ("🔥", "Cook", recipe.cook_time),
        ("🍽️", "Servings", recipe.servings),
    ):
        parts.append(
            f'<div class="rec-info-item"><span>{icon}</span> {label}: {escape(value or "N/A")}</div>'
        )
    parts.append("</div>")

    parts.append('<div class="recipe-content-box">')

    parts.append('<div class="recipe-section active" id="ingredients-section">')
    lines = [l.strip() for l in (recipe.ingredients or "").split("\n") if l.strip()]
    if lines:
        parts.append("<ul>")
        parts.extend(f"<li>{escape(l)}</li>" for l in lines)
        parts.append("</ul>")
    else:
        parts.append("<p>No ingredients listed.</p>")
    parts.append("</div>")

    parts.append('<div class="recipe-section" id="instructions-section">')
    steps = [p.strip() for p in (recipe.directions or "").split("\n\n") if p.strip()]
    if steps:
        for i, step in enumerate(steps, start=1):
            parts.append(f"<p><strong>Step {i}:</strong> {escape(step)}</p>")
    else:
        parts.append("<p>No instructions available.</p>")

    if recipe.notes and recipe.notes.strip():
        parts.append(f'<div class="recipe-notes"><h4>📌 Notes:</h4><p>{escape(recipe.notes.strip())}</p></div>')
    parts.append("</div>")

    parts.append("</div>")
    return "".join(parts)
