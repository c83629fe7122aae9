"""Turn GC Articles posts into markdown files.

A post becomes a markdown document with alphabetized YAML front matter
followed by the rendered body. The output depends only on the post, so an
unchanged post produces a byte-identical file and the reconciler can skip it.
"""

import re
import unicodedata
from typing import Any

import yaml

HTML_ENTITIES = {
    "&#8217;": "'",
    "&amp;": "&",
}


def clean_title(title: str) -> str:
    """Replace the HTML entities WordPress leaves in rendered titles."""
    for entity, replacement in HTML_ENTITIES.items():
        title = title.replace(entity, replacement)
    return title


def title_to_filename(title: str) -> str:
    """Convert a title to a URL-friendly filename (slug).

    Accents are folded so English and French titles both map to ASCII.

    Example:
        >>> title_to_filename("Édition spéciale : l'été 2024")
        'edition-speciale-lete-2024'
    """
    decomposed = unicodedata.normalize("NFD", title)
    ascii_only = "".join(char for char in decomposed if not unicodedata.combining(char))
    slug = re.sub(r"[^a-z0-9\s-]", "", ascii_only.lower()).strip()
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


def _featured_media(post: dict[str, Any]) -> dict[str, Any] | None:
    media_list = (post.get("_embedded") or {}).get("wp:featuredmedia") or []
    if not media_list or not isinstance(media_list[0], dict):
        return None
    return media_list[0]


def build_front_matter(post: dict[str, Any], lang: str) -> dict[str, str]:
    """Collect front matter fields for a post, dropping empty values."""
    front_matter: dict[str, str] = {
        "author": (post.get("meta") or {}).get("gc_author_name") or "",
        "date": post.get("date") or "",
        "description": (((post.get("markdown") or {}).get("excerpt") or {}).get("rendered")) or "",
        "lang": lang,
        "title": clean_title(post["title"]["rendered"]),
        "translationKey": post.get("translationKey") or post.get("slug") or "",
    }

    media = _featured_media(post)
    if media is not None:
        source_url = (((media.get("media_details") or {}).get("sizes") or {}).get("full") or {}).get("source_url")
        front_matter["image"] = source_url or ""
        front_matter["imageAlt"] = media.get("alt_text") or ""
        front_matter["thumb"] = source_url or ""

    return {key: value for key, value in front_matter.items() if value}


def render_markdown(post: dict[str, Any], lang: str) -> str:
    """Render a post as front matter plus body.

    Args:
        post: Post object from the GC Articles ``posts`` endpoint
        lang: Language code ("en" or "fr")

    Returns:
        Complete markdown file contents, ending in a newline
    """
    front_matter = yaml.safe_dump(
        build_front_matter(post, lang),
        sort_keys=True,
        allow_unicode=True,
        default_flow_style=False,
        width=float("inf"),
    )
    body = post["content"]["rendered"]
    return f"---\n{front_matter}---\n{body}\n"
