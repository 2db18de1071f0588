from measure_media.config import MeasureConfig
from measure_media.filters import is_eligible
from measure_media.models import Attribute, Element

INCLUDE = "data-measure-media-include"
EXCLUDE = "data-measure-media-exclude"


def _img(*markers: str) -> Element:
    return Element("img", [Attribute("src", "a.jpg"), *(Attribute(m, "") for m in markers)])


def test_exclude_mode_skips_only_excluded() -> None:
    config = MeasureConfig()
    assert is_eligible(_img(), config)
    assert not is_eligible(_img(EXCLUDE), config)
    assert not is_eligible(_img(EXCLUDE), config, nested=True)


def test_include_mode_requires_marker_at_top_level() -> None:
    config = MeasureConfig(filter="include")
    assert not is_eligible(_img(), config)
    assert is_eligible(_img(INCLUDE), config)


def test_include_mode_nested_elements_inherit_parent_decision() -> None:
    config = MeasureConfig(filter="include")
    assert is_eligible(_img(), config, nested=True)


def test_custom_marker_names() -> None:
    config = MeasureConfig(exclude="data-no-size")
    assert not is_eligible(_img("data-no-size"), config)
    assert is_eligible(_img(EXCLUDE), config)
