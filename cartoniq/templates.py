"""
Named chocolate box presets.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from .errors import UnsupportedArchetype
from .models import Archetype, BoxDimensions


@dataclass(frozen=True)
class BoxTemplate:
    id: str
    name: str
    archetype: Archetype
    dimensions: BoxDimensions
    capacity: int
    material_id: str
    board_thickness: float
    description: str = ''


BOX_TEMPLATES: List[BoxTemplate] = [
    BoxTemplate('gift-16', "Premium Gift Box (16 pieces)", Archetype.GIFT,
                BoxDimensions(250, 200, 50), 16, 'coated-350', 1.5,
                "Standard premium gift box, the most popular size."),
    BoxTemplate('gift-24', "Large Gift Box (24 pieces)", Archetype.GIFT,
                BoxDimensions(300, 240, 50), 24, 'textured-premium', 2.0,
                "High-capacity gift box for special occasions."),
    BoxTemplate('gift-9', "Compact Gift Box (9 pieces)", Archetype.GIFT,
                BoxDimensions(180, 180, 40), 9, 'coated-350', 1.5,
                "Compact box for small gestures."),
    BoxTemplate('truffle-12', "Truffle Box (12 pieces)", Archetype.TRUFFLE,
                BoxDimensions(200, 160, 35), 12, 'coated-350', 1.0,
                "Open tray for truffles."),
    BoxTemplate('bar-single', "Single Bar Sleeve", Archetype.BAR,
                BoxDimensions(160, 80, 10), 1, 'kraft-300', 0.5,
                "Minimal wrap for one chocolate bar."),
    BoxTemplate('seasonal-valentines', "Valentine's Box (20 pieces)", Archetype.SEASONAL,
                BoxDimensions(220, 220, 45), 20, 'textured-premium', 1.5,
                "Seasonal gift box for Valentine's Day."),
]

_BY_ID: Dict[str, BoxTemplate] = {t.id: t for t in BOX_TEMPLATES}


def get_template(template_id: str) -> BoxTemplate:
    """
    Look up a preset by id.

    Raises:
        UnsupportedArchetype: If no preset has that id
    """
    try:
        return _BY_ID[template_id]
    except KeyError:
        raise UnsupportedArchetype(
            f"Unknown template: {template_id!r} (expected one of {', '.join(_BY_ID)})"
        ) from None


def list_templates(archetype: Optional[Archetype] = None) -> List[BoxTemplate]:
    if archetype is None:
        return list(BOX_TEMPLATES)
    return [t for t in BOX_TEMPLATES if t.archetype == archetype]
