"""Prompt templates for the text-generation service.

Each template has a strict output contract; the callers in
casilocal.normalize and casilocal.refine parse against it.
"""

KNOWN_NEIGHBORHOODS = [
    "Malasaña",
    "Lavapiés",
    "Chamberí",
    "Salamanca",
    "La Latina",
    "Chueca",
    "Huertas",
    "Sol",
    "Retiro",
    "Moncloa",
    "Argüelles",
    "Conde Duque",
    "Embajadores",
    "Tribunal",
]


def neighborhood_prompt(place_name: str, address: str) -> str:
    """Single line out: the barrio name in Spanish."""
    return f"""Given this Madrid cafe address, identify the neighborhood (barrio) name.

Cafe: "{place_name}"
Address: "{address}"

Common Madrid neighborhoods include: {", ".join(KNOWN_NEIGHBORHOODS)}, and many others.

Respond with ONLY the neighborhood name in Spanish (e.g., "Malasaña", "Lavapiés", "Chamberí"). No explanation, just the name."""


def clean_name_prompt(raw_name: str) -> str:
    """Single line out: the distinctive brand name, Title Case."""
    return f"""Clean up this cafe name by removing generic descriptors.

Raw name: "{raw_name}"

Remove things like:
- "Specialty Coffee", "Coffee Shop", "Café"
- "& Brunch", "& Bottle Shop", "| Brunch"
- Location suffixes like "Madrid", "Letras"
- Pipe separators and everything after them

Keep the distinctive brand name only. Examples:
- "Ambu Coffee Letras | Specialty Coffee Shop" -> "Ambu"
- "PASTORA – Café & Bottle Shop" -> "Pastora"
- "Pascal Specialty Coffee & Brunch" -> "Pascal"
- "DABOV Specialty Coffee Spain" -> "Dabov"

Respond with ONLY the cleaned name, properly capitalized (Title Case). No explanation."""


def synthesis_prompt(place_name: str, rating: float | None, review_texts: list[str]) -> str:
    """JSON out: wifi_speed, noise_level, plug_access, casi_score, review."""
    joined = "\n---\n".join(review_texts)
    rating_text = f"{rating}/5" if rating is not None else "unknown"
    return f"""You are analyzing Google reviews for a cafe called "{place_name}" in Madrid. The cafe has a {rating_text} rating.

Here are the reviews:
{joined}

Based on these reviews, provide a JSON response with:
1. "wifi_speed": One of "flynet" (50mb+, fast), "reliable" (good enough), "spotty" (unreliable), "detox" (no wifi)
2. "noise_level": One of "silence" (library quiet), "hum" (pleasant cafe buzz), "chaos" (loud/busy)
3. "plug_access": true or false (are power outlets mentioned/available?)
4. "casi_score": An integer 1-10 based on how good this place is for laptop work
5. "review": A 2-paragraph markdown review (with ## headings "The Vibe" and "The Verdict"). The tone should be analytical, slightly cynical but fair, dense with useful information. Focus on what remote workers need to know.

Respond ONLY with valid JSON, no markdown code blocks."""


def suggest_query_prompt(current_query: str, known_names: list[str]) -> str:
    """Single line out: one new search query under 10 words."""
    names = "\n".join(known_names)
    return f"""You are helping find NEW specialty coffee cafes in Madrid for remote workers.

Original search query: "{current_query}"

We already have these spots in our database:
{names}

Suggest ONE new Google Maps search query that will find DIFFERENT cafes we don't have yet. Try:
- Different neighborhoods (Argüelles, Retiro, Tetuán, Vallecas, etc.)
- Different angles ("coworking cafes", "quiet cafes with wifi", "laptop friendly brunch spots")
- Specific areas ("cafes near Calle Fuencarral", "coffee shops in Chamartín")

Respond with ONLY the search query text, no explanation. Keep it under 10 words."""


REWRITE_SECTIONS = ["First Impressions", "The Setup", "The Coffee", "The Verdict"]


def rewrite_prompt(spot_name: str, neighborhood: str, current_review: str) -> str:
    """Markdown out, starting with a ## heading."""
    sections = "\n".join(f'   - "## {s}"' for s in REWRITE_SECTIONS)
    return f"""You are writing for CasiLocal, a Madrid-based guide for remote workers and digital nomads. You know the city inside out, from the vermut bars of La Latina to the hipster cafes of Malasaña, from the quiet corners of Chamberí to the chaos of Sol.

**The cafe**: "{spot_name}" in {neighborhood}

**Current draft** (too generic, rewrite completely):
---
{current_review}
---

**Your task:** Write a compelling review that sounds like a local Madrileño wrote it:

1. **Voice**: You've lived in Madrid for years. Compare this cafe to others in the neighborhood. Mention nearby landmarks, streets, the vibe of the barrio. Use a Spanish word or two naturally ("caña", "terraza", "de toda la vida").

2. **Structure**: 3-4 paragraphs with these headings:
{sections}

3. **Madrid context**: compare to other spots, reference local habits ("the 11am café con leche crowd", "post-siesta rush"), and say what makes {neighborhood} special.

4. **Practical details for remote workers**: specific outlet locations, best times to come (avoid "la hora del vermut"), what to order and what to skip.

5. **Tone**: Dense, opinionated, occasionally sarcastic but ultimately fair. No fluff.

6. **Length**: 300-450 words.

Respond with ONLY the markdown content (starting with ## heading). No intro, no "Here's the review"."""
