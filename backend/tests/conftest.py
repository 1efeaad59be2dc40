"""Общие фикстуры тестов labelkit."""

import pytest

from labelkit.models.label_types import LabelData, LabelFieldConfig, LabelLayout


@pytest.fixture
def card_data() -> LabelData:
    """Типичная карточка магазина."""
    return LabelData(
        title="2023 Topps Chrome Shohei Ohtani Refractor",
        sku="TC-0042",
        price="12.99",
        lot="L7",
        condition="NM",
        barcode="TC-0042",
    )


@pytest.fixture
def default_layout() -> LabelLayout:
    return LabelLayout.default()


@pytest.fixture
def all_fields() -> LabelFieldConfig:
    return LabelFieldConfig()
