"""
Normalisation of loosely-typed Prismic documents.

Everything coming from the content API is treated as a partially-unknown
record. The parse() classmethods below turn a raw dict into a fully
populated dataclass with defaults for every optional field, so the rest
of the pipeline never touches raw API data.
"""

import math
import re
import unicodedata
from dataclasses import dataclass, field
from typing import Any, List, Optional, Set, Union


SLUG_SENTINEL = 'asset'
_NON_ALNUM = re.compile(r'[^a-zA-Z0-9]+')


def to_plain_text(value: Any) -> Optional[str]:
    """
    Flatten a string or a rich-text field into trimmed plain text.

    Rich-text fields are lists of blocks with a 'text' key; blocks are
    joined with newlines. Empty results become None.
    """
    if value is None:
        return None

    if isinstance(value, str):
        text = value.strip()
        return text or None

    if isinstance(value, list):
        parts = []
        for node in value:
            text = node.get('text') if isinstance(node, dict) else None
            parts.append(text if isinstance(text, str) else '')
        text = '\n'.join(parts).strip()
        return text or None

    return None


def to_numeric(value: Any) -> Optional[Union[int, float]]:
    """Parse a finite number from a number or a numeric-looking string."""
    if isinstance(value, bool):
        return None

    if isinstance(value, int):
        return value

    if isinstance(value, float):
        return value if math.isfinite(value) else None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            parsed = float(text)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None

    return None


def to_optional_string(value: Any) -> Optional[str]:
    """Trimmed string, or None for anything empty or not a string."""
    if isinstance(value, str):
        return value.strip() or None
    return None


def slugify(value: Optional[str], fallback: str) -> str:
    """
    Normalise a value into a URL slug.

    Lowercases, strips diacritics and collapses every run of
    non-alphanumeric characters into a single '-'. An empty result falls
    back to the normalised fallback, then to SLUG_SENTINEL.
    """
    candidate = str(value or '').strip()
    decomposed = unicodedata.normalize('NFKD', candidate)
    stripped = ''.join(c for c in decomposed if not unicodedata.combining(c))
    slug = _NON_ALNUM.sub('-', stripped).strip('-').lower()
    if slug:
        return slug

    fallback_slug = _NON_ALNUM.sub('-', str(fallback or '').strip().lower()).strip('-')
    return fallback_slug or SLUG_SENTINEL


def ensure_unique_slug(base: str, used: Set[str]) -> str:
    """Return base, or base-2, base-3... whichever is free, and mark it used."""
    if base not in used:
        used.add(base)
        return base

    index = 2
    candidate = f"{base}-{index}"
    while candidate in used:
        index += 1
        candidate = f"{base}-{index}"

    used.add(candidate)
    return candidate


def _mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


@dataclass
class AssetLink:
    """
    A content relationship from a collection to an image_asset document.

    Attributes:
        id: Target document id
        uid: Target document uid
        type: Target custom type, if the API provided it
        link_type: Prismic link type ('Document', 'Web', 'Media', 'Any')
    """
    id: Optional[str] = None
    uid: Optional[str] = None
    type: Optional[str] = None
    link_type: Optional[str] = None

    @classmethod
    def parse(cls, raw: Any) -> Optional['AssetLink']:
        data = _mapping(raw)
        if not data:
            return None
        return cls(
            id=to_optional_string(data.get('id')),
            uid=to_optional_string(data.get('uid')),
            type=to_optional_string(data.get('type')),
            link_type=to_optional_string(data.get('link_type')),
        )

    @property
    def is_image_asset_link(self) -> bool:
        """True unless the link explicitly points at something else."""
        if self.link_type and self.link_type != 'Document':
            return False
        if self.type and self.type != 'image_asset':
            return False
        return True


@dataclass
class ImageAssetDocument:
    """An image_asset document reduced to the fields the pipeline uses."""
    id: str
    uid: Optional[str] = None
    url: Optional[str] = None
    alt: Optional[str] = None
    width: Optional[Union[int, float]] = None
    height: Optional[Union[int, float]] = None
    caption: Optional[str] = None
    credits: Optional[str] = None
    order: Optional[Union[int, float]] = None

    @classmethod
    def parse(cls, raw: Any) -> Optional['ImageAssetDocument']:
        """Parse a raw API document; None if it has no id."""
        doc = _mapping(raw)
        doc_id = to_optional_string(doc.get('id'))
        if not doc_id:
            return None

        data = _mapping(doc.get('data'))
        image = _mapping(data.get('image'))
        dimensions = _mapping(image.get('dimensions'))

        return cls(
            id=doc_id,
            uid=to_optional_string(doc.get('uid')),
            url=to_optional_string(image.get('url')),
            alt=to_plain_text(image.get('alt')),
            width=to_numeric(dimensions.get('width')),
            height=to_numeric(dimensions.get('height')),
            caption=to_plain_text(data.get('caption')),
            credits=to_plain_text(data.get('credits')),
            order=to_numeric(data.get('order')),
        )


@dataclass
class CollectionDocument:
    """
    A collection document reduced to the fields the pipeline uses.

    Attributes:
        id: Document id
        uid: Document uid (slug source)
        title: Plain-text title
        description: Plain-text short description
        order: Explicit display order, if any
        image_links: One entry per item of the images group, None for
            items without a usable relationship (positions are preserved)
    """
    id: str
    uid: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    order: Optional[Union[int, float]] = None
    image_links: List[Optional[AssetLink]] = field(default_factory=list)

    @classmethod
    def parse(cls, raw: Any) -> Optional['CollectionDocument']:
        """Parse a raw API document; None if it has no id."""
        doc = _mapping(raw)
        doc_id = to_optional_string(doc.get('id'))
        if not doc_id:
            return None

        data = _mapping(doc.get('data'))
        items = data.get('images') if isinstance(data.get('images'), list) else []

        return cls(
            id=doc_id,
            uid=to_optional_string(doc.get('uid')),
            title=to_plain_text(data.get('title')),
            description=to_plain_text(data.get('short_description')),
            order=to_numeric(data.get('order')),
            image_links=[AssetLink.parse(_mapping(item).get('asset')) for item in items],
        )

    @property
    def slug(self) -> str:
        return slugify(self.uid, self.id)
