import pytest

from cartoniq.dieline import generate_dieline
from cartoniq.errors import UnsupportedArchetype
from cartoniq.models import Archetype
from cartoniq.templates import BOX_TEMPLATES, get_template, list_templates


def test_lookup():
    template = get_template("gift-16")
    assert template.archetype == Archetype.GIFT
    assert template.dimensions.as_tuple() == (250.0, 200.0, 50.0)
    assert template.capacity == 16


def test_unknown_template():
    with pytest.raises(UnsupportedArchetype):
        get_template("gift-100")


def test_filter_by_archetype():
    assert [t.id for t in list_templates(Archetype.GIFT)] == ["gift-16", "gift-24", "gift-9"]
    assert len(list_templates()) == len(BOX_TEMPLATES)


@pytest.mark.parametrize("template", BOX_TEMPLATES, ids=lambda t: t.id)
def test_every_template_generates(template):
    result = generate_dieline(template.archetype, template.dimensions)
    assert result.is_closed()
    assert result.fold_lines
