"""Tests for heading-anchored region segmentation."""

import pytest

from transit_ocr.ocr.region_segmenter import (
    FULL_TEXT,
    IDENTIFIER,
    PLATE,
    VEHICLE_DATA,
    RegionSegmenter,
    match_heading,
)

CARD_TEXT = "\n".join(
    [
        "MUNICIPALIDAD PROVINCIAL DE AREQUIPA",
        "TARJETA UNICA DE CIRCULACION",
        "CÓDIGO ÚNICO IDENTIFICADOR",
        "1234",
        "DATOS DEL VEHÍCULO",
        "PLACA RODAJE | MARCA | MODELO",
        "V1A-123 | HYUNDAI | COUNTY",
        "PLACA RODAJE",
        "V1A-123",
    ]
)


@pytest.fixture
def segmenter() -> RegionSegmenter:
    return RegionSegmenter(max_region_lines=10)


class TestMatchHeading:
    """Tests for heading anchor detection."""

    def test_identifier_heading(self) -> None:
        assert match_heading("CÓDIGO ÚNICO IDENTIFICADOR") == IDENTIFIER

    def test_identifier_heading_with_ocr_noise(self) -> None:
        assert match_heading("BOIGO UNICO IDENTIFICADOR") == IDENTIFIER
        assert match_heading("c0digo unic0 identif") == IDENTIFIER

    def test_plate_heading_standalone(self) -> None:
        assert match_heading("PLACA DE RODAJE") == PLATE
        assert match_heading("- PLACA RODAJE -") == PLATE

    def test_plate_column_row_is_not_a_heading(self) -> None:
        assert match_heading("PLACA RODAJE | MARCA | MODELO") is None

    def test_vehicle_heading(self) -> None:
        assert match_heading("DATOS DEL VEHICULO") == VEHICLE_DATA

    def test_plain_line(self) -> None:
        assert match_heading("AREQUIPA") is None


class TestRegionSegmenter:
    """Tests for RegionSegmenter.segment."""

    def test_regions_in_page_order(self, segmenter: RegionSegmenter) -> None:
        regions = segmenter.segment(CARD_TEXT)
        assert [r.name for r in regions.ordered] == [IDENTIFIER, VEHICLE_DATA, PLATE]

    def test_region_contents(self, segmenter: RegionSegmenter) -> None:
        regions = segmenter.segment(CARD_TEXT)
        assert regions.get(IDENTIFIER).lines == ["CÓDIGO ÚNICO IDENTIFICADOR", "1234"]
        assert regions.get(PLATE).lines == ["PLACA RODAJE", "V1A-123"]
        assert regions.get(IDENTIFIER).closed_by == "anchor"
        assert regions.get(PLATE).closed_by == "end"

    def test_leading_lines_are_discarded(self, segmenter: RegionSegmenter) -> None:
        regions = segmenter.segment(CARD_TEXT)
        assert regions.discarded_line_count == 2

    def test_full_text_always_available(self, segmenter: RegionSegmenter) -> None:
        regions = segmenter.segment("sin encabezados\n5821")
        assert regions.regions == {}
        assert FULL_TEXT in regions
        assert regions.text(FULL_TEXT) == "sin encabezados\n5821"
        assert regions.discarded_line_count == 2

    def test_missing_region_text_is_none(self, segmenter: RegionSegmenter) -> None:
        regions = segmenter.segment("sin encabezados")
        assert IDENTIFIER not in regions
        assert regions.text(IDENTIFIER) is None

    def test_line_cap_force_closes_region(self, segmenter: RegionSegmenter) -> None:
        body = [f"linea {i}" for i in range(15)]
        regions = segmenter.segment("\n".join(["DATOS DEL VEHICULO", *body]))
        region = regions.get(VEHICLE_DATA)
        assert len(region.lines) == 11
        assert region.closed_by == "line_cap"
        assert regions.discarded_line_count == 5

    def test_anchor_after_cap_opens_new_region(self, segmenter: RegionSegmenter) -> None:
        body = [f"linea {i}" for i in range(12)]
        text = "\n".join(["DATOS DEL VEHICULO", *body, "PLACA RODAJE", "ABC123"])
        regions = segmenter.segment(text)
        assert regions.get(PLATE).lines == ["PLACA RODAJE", "ABC123"]

    def test_duplicate_heading_keeps_first(self, segmenter: RegionSegmenter) -> None:
        text = "PLACA RODAJE\nABC123\nPLACA RODAJE\nXYZ789"
        regions = segmenter.segment(text)
        assert regions.get(PLATE).lines == ["PLACA RODAJE", "ABC123"]
        assert regions.discarded_line_count == 2

    @pytest.mark.parametrize(
        "text",
        [
            CARD_TEXT,
            "",
            "PLACA RODAJE\nABC123\nPLACA RODAJE\nXYZ789",
            "\n".join(["DATOS DEL VEHICULO"] + ["x"] * 30 + ["PLACA RODAJE"] + ["y"] * 30),
        ],
    )
    def test_no_line_counted_twice(self, segmenter: RegionSegmenter, text: str) -> None:
        regions = segmenter.segment(text)
        assigned = sum(len(region.lines) for region in regions.regions.values())
        assert assigned + regions.discarded_line_count <= len(text.split("\n"))
