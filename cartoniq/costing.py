"""
Cost Estimator

Board area from box dimensions, priced per square meter of material plus a
finish, with tiered volume discounts.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .config import DEFAULT_SETTINGS
from .errors import InvalidCostInput
from .models import BoxDimensions

logger = logging.getLogger(__name__)

# (quantity strictly above, discount rate); the highest matching tier wins
DISCOUNT_TIERS: Tuple[Tuple[int, float], ...] = ((5000, 0.20), (1000, 0.10))


@dataclass(frozen=True)
class Material:
    id: str
    name: str
    price_per_m2: float
    currency: str = 'USD'


@dataclass(frozen=True)
class Finish:
    id: str
    name: str
    price_per_unit: float
    price_per_m2: float = 0.0


MATERIALS: Dict[str, Material] = {
    m.id: m for m in (
        Material('kraft-300', 'Kraft Paper 300gsm', 0.5),
        Material('coated-350', 'Coated Art Paper 350gsm', 0.8),
        Material('textured-premium', 'Premium Textured 300gsm', 1.5),
    )
}

FINISHES: Dict[str, Finish] = {
    f.id: f for f in (
        Finish('none', 'None', 0.0),
        Finish('matte-lamination', 'Matte Lamination', 0.1),
        Finish('gold-foil', 'Gold Foil Stamping', 0.3, 0.3),
        Finish('spot-uv', 'Spot UV', 0.2),
    )
}

DEFAULT_MATERIAL = 'kraft-300'
DEFAULT_FINISH = 'none'


@dataclass(frozen=True)
class CostEstimate:
    material: Material
    finish: Finish
    quantity: int
    area_m2: float
    discount: float
    unit_cost: float
    total_cost: float

    @property
    def currency(self) -> str:
        return self.material.currency


@dataclass(frozen=True)
class QuoteScenario:
    estimate: CostEstimate
    savings_percent: float   # unit-cost saving against the first scenario


def _dimensions(dimensions: Union[BoxDimensions, Sequence[float]]) -> Tuple[float, float, float]:
    values = dimensions.as_tuple() if isinstance(dimensions, BoxDimensions) else tuple(dimensions)
    if len(values) != 3:
        raise InvalidCostInput(f"Expected (length, width, height), got {dimensions!r}")
    checked = []
    for name, value in zip(('length', 'width', 'height'), values):
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise InvalidCostInput(f"{name} must be a number, got {value!r}") from None
        if not math.isfinite(number) or number <= 0:
            raise InvalidCostInput(f"{name} must be positive, got {value!r}")
        checked.append(number)
    return tuple(checked)


def surface_area(dimensions, waste_factor: Optional[float] = None) -> float:
    """
    Board area in mm²: the six faces of the box plus a waste allowance.

    The allowance defaults to the waste_factor of the geometry constants.

    Example:
        >>> surface_area((100, 100, 100), waste_factor=1.0)
        60000.0
    """
    l, w, h = _dimensions(dimensions)
    if waste_factor is None:
        waste_factor = DEFAULT_SETTINGS.geometry.waste_factor
    return 2 * (l * w + l * h + w * h) * waste_factor


def discount_rate(quantity: int) -> float:
    for threshold, rate in DISCOUNT_TIERS:
        if quantity > threshold:
            return rate
    return 0.0


def _lookup(catalogue: Dict, item_id: str, default_id: str, what: str):
    item = catalogue.get(item_id)
    if item is None:
        logger.warning("Unknown %s %r, using %r", what, item_id, default_id)
        item = catalogue[default_id]
    return item


def calculate_cost(dimensions, material_id: str = DEFAULT_MATERIAL,
                   finish_id: str = DEFAULT_FINISH, quantity: int = 1,
                   waste_factor: Optional[float] = None) -> CostEstimate:
    """
    Estimate unit and total cost for a production run.

    Args:
        dimensions: BoxDimensions or (length, width, height) in mm
        material_id: Key into MATERIALS (unknown ids fall back to kraft-300)
        finish_id: Key into FINISHES (unknown ids fall back to none)
        quantity: Number of boxes, a positive integer
        waste_factor: Allowance for flaps and trim (geometry default when None)

    Returns:
        CostEstimate where total_cost is exactly unit_cost * quantity

    Raises:
        InvalidCostInput: Non-positive dimensions or quantity
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidCostInput(f"quantity must be a positive integer, got {quantity!r}")

    material = _lookup(MATERIALS, material_id, DEFAULT_MATERIAL, 'material')
    finish = _lookup(FINISHES, finish_id, DEFAULT_FINISH, 'finish')

    area_m2 = surface_area(dimensions, waste_factor) / 1_000_000
    base_unit_cost = (area_m2 * material.price_per_m2
                      + finish.price_per_unit
                      + area_m2 * finish.price_per_m2)
    discount = discount_rate(quantity)
    unit_cost = base_unit_cost * (1 - discount)

    return CostEstimate(
        material=material,
        finish=finish,
        quantity=quantity,
        area_m2=area_m2,
        discount=discount,
        unit_cost=unit_cost,
        total_cost=unit_cost * quantity,
    )


def quote_scenarios(dimensions, material_id: str = DEFAULT_MATERIAL,
                    finish_id: str = DEFAULT_FINISH,
                    quantities: Sequence[int] = (500, 1000, 5000),
                    waste_factor: Optional[float] = None) -> List[QuoteScenario]:
    """Estimates for several run sizes, with savings measured against the first."""
    estimates = [calculate_cost(dimensions, material_id, finish_id, q, waste_factor)
                 for q in quantities]
    if not estimates:
        return []
    reference = estimates[0].unit_cost
    return [
        QuoteScenario(e, (1 - e.unit_cost / reference) * 100 if reference else 0.0)
        for e in estimates
    ]
