"""Тесты генератора TSPL."""

import pytest

from labelkit.models.label_types import (
    Bar,
    Barcode,
    LabelData,
    LabelFieldConfig,
    PrinterSettings,
    QRCode,
    TextLine,
    TSPLOptions,
)
from labelkit.services.errors import ValidationError
from labelkit.services.tspl import (
    QuotePolicy,
    build_sample_label,
    build_tspl,
    calculate_optimal_font_size,
    generate_boxed_layout_tspl,
    generate_tspl_from_layout,
    label_data_to_tspl,
    quote_text,
)


def _commands(program: str) -> list[str]:
    return program.split("\n")


class TestBuildTspl:
    """Базовый генератор команд."""

    def test_empty_options_minimal_program(self):
        """Пустой вход — минимальная программа из 8 команд."""
        assert build_tspl(TSPLOptions()) == "\n".join(
            [
                "SIZE 2,1",
                "GAP 0,0",
                "DENSITY 10",
                "SPEED 4",
                "DIRECTION 1",
                "REFERENCE 0,0",
                "CLS",
                "PRINT 1",
            ]
        )

    def test_none_options_same_as_empty(self):
        assert build_tspl(None) == build_tspl(TSPLOptions())

    @pytest.mark.parametrize(
        "options",
        [
            TSPLOptions(),
            TSPLOptions(text_lines=[TextLine(text="A"), TextLine(text="B", y=60)]),
            TSPLOptions(
                qrcode=QRCode(data="X"),
                barcode=Barcode(data="Y"),
                lines=[Bar(x=0, y=0, width=10, height=2)],
            ),
        ],
    )
    def test_size_cls_print_exactly_once_in_order(self, options):
        """SIZE, CLS и PRINT — ровно по одному, в этом порядке."""
        commands = _commands(build_tspl(options))

        assert sum(1 for c in commands if c.startswith("SIZE ")) == 1
        assert commands.count("CLS") == 1
        assert sum(1 for c in commands if c.startswith("PRINT ")) == 1
        assert commands[0] == "SIZE 2,1"
        assert commands.index("CLS") < commands.index("PRINT 1")
        assert commands[-1] == "PRINT 1"

    def test_full_command_order(self):
        options = TSPLOptions(
            text_lines=[TextLine(text="Title", x=15, y=15, font_size=2)],
            qrcode=QRCode(data="https://example.com", x=10, y=80, size="L", error_level="H"),
            barcode=Barcode(data="ABC", x=100, y=120, width=3, height=40),
            lines=[Bar(x=10, y=190, width=386, height=2)],
            gap_inches=0.12,
            density=8,
            speed=3,
        )

        assert _commands(build_tspl(options)) == [
            "SIZE 2,1",
            "GAP 0.12,0",
            "DENSITY 8",
            "SPEED 3",
            "DIRECTION 1",
            "REFERENCE 0,0",
            "CLS",
            'TEXT 15,15,"0",0,2,2,"Title"',
            'QRCODE 10,80,H,6,A,0,"https://example.com"',
            'BARCODE 100,120,"CODE128",40,1,0,3,3,"ABC"',
            "BAR 10,190,386,2",
            "PRINT 1",
        ]

    def test_text_lines_keep_input_order(self):
        options = TSPLOptions(
            text_lines=[TextLine(text="second", y=50), TextLine(text="first", y=10)]
        )
        texts = [c for c in _commands(build_tspl(options)) if c.startswith("TEXT")]
        assert texts == [
            'TEXT 10,50,"0",0,1,1,"second"',
            'TEXT 10,10,"0",0,1,1,"first"',
        ]

    @pytest.mark.parametrize("size,cell", [("S", 3), ("M", 4), ("L", 6)])
    def test_qr_cell_width(self, size, cell):
        program = build_tspl(TSPLOptions(qrcode=QRCode(data="Q", size=size)))
        assert f'QRCODE 10,80,M,{cell},A,0,"Q"' in program

    def test_integer_float_gap_without_fraction(self):
        assert "GAP 2,0" in build_tspl(TSPLOptions(gap_inches=2.0))

    def test_single_qr_overwrites(self):
        options = TSPLOptions()
        options.set_qrcode(QRCode(data="first"))
        options.set_qrcode(QRCode(data="second"))

        commands = [c for c in _commands(build_tspl(options)) if c.startswith("QRCODE")]
        assert commands == ['QRCODE 10,80,M,4,A,0,"second"']


class TestQuotePolicy:
    """Кавычки и переводы строк внутри текста."""

    def test_sanitize_is_default(self):
        program = build_tspl(TSPLOptions(text_lines=[TextLine(text='He said "hi"\nok')]))
        assert 'TEXT 10,20,"0",0,1,1,"He said  hi  ok"' in program

    def test_passthrough_keeps_text(self):
        assert quote_text('5" card', QuotePolicy.PASSTHROUGH) == '5" card'

    def test_reject_raises(self):
        with pytest.raises(ValidationError):
            build_tspl(
                TSPLOptions(text_lines=[TextLine(text='5" card')]),
                quote_policy=QuotePolicy.REJECT,
            )

    def test_reject_accepts_clean_text(self):
        assert quote_text("clean", QuotePolicy.REJECT) == "clean"

    def test_policy_applies_to_qr_data(self):
        program = build_tspl(TSPLOptions(qrcode=QRCode(data='a"b')))
        assert 'QRCODE 10,80,M,4,A,0,"a b"' in program

    def test_policy_from_string(self):
        assert quote_text("a\rb", "sanitize") == "a b"


class TestInputValidation:
    """Недопустимые параметры команд."""

    @pytest.mark.parametrize("font_size", [0, 6])
    def test_font_size_out_of_range(self, font_size):
        with pytest.raises(ValidationError):
            TextLine(text="x", font_size=font_size)

    def test_rotation_not_quantized(self):
        with pytest.raises(ValidationError):
            TextLine(text="x", rotation=45)

    @pytest.mark.parametrize(
        "kwargs", [{"density": 16}, {"density": -1}, {"speed": 1}, {"speed": 9}, {"gap_inches": -0.1}]
    )
    def test_print_parameters_out_of_range(self, kwargs):
        with pytest.raises(ValidationError):
            TSPLOptions(**kwargs)

    def test_qr_size_and_level(self):
        with pytest.raises(ValidationError):
            QRCode(data="x", size="XL")
        with pytest.raises(ValidationError):
            QRCode(data="x", error_level="Z")


class TestGenerateFromLayout:
    """TSPL по LabelLayout."""

    def test_default_layout_fields_in_order(self, default_layout, card_data):
        texts = [
            c
            for c in _commands(generate_tspl_from_layout(default_layout, card_data))
            if c.startswith("TEXT")
        ]
        assert texts == [
            'TEXT 15,15,"0",0,2,2,"2023 Topps Chrome Shohei "',
            'TEXT 15,45,"0",0,1,1,"SKU: TC-0042"',
            'TEXT 280,15,"0",0,3,3,"$12.99"',
            'TEXT 15,70,"0",0,1,1,"LOT: L7"',
            'TEXT 200,45,"0",0,1,1,"NM"',
        ]

    def test_title_truncated_to_25(self, default_layout):
        program = generate_tspl_from_layout(default_layout, LabelData(title="X" * 40))
        assert f'"{"X" * 25}"' in program
        assert "X" * 26 not in program

    def test_price_prefix_not_doubled(self, default_layout):
        program = generate_tspl_from_layout(default_layout, LabelData(price="$5"))
        assert '"$5"' in program
        assert "$$" not in program

    def test_hidden_and_empty_fields_skipped(self, default_layout):
        default_layout.price.visible = False
        program = generate_tspl_from_layout(
            default_layout, LabelData(title="Card", price="10", sku="")
        )
        assert "$10" not in program
        assert "SKU:" not in program
        assert '"Card"' in program

    def test_empty_prefix_falls_back_to_default(self, default_layout):
        default_layout.sku.prefix = ""
        default_layout.lot.prefix = ""
        program = generate_tspl_from_layout(default_layout, LabelData(sku="A1", lot="9"))
        assert '"SKU: A1"' in program
        assert '"LOT: 9"' in program

    def test_qr_region(self, default_layout, card_data):
        default_layout.barcode.mode = "qr"
        program = generate_tspl_from_layout(default_layout, card_data)
        assert 'QRCODE 10,90,M,4,A,0,"TC-0042"' in program
        assert "BARCODE" not in program

    def test_barcode_region_defaults(self, default_layout, card_data):
        default_layout.barcode.mode = "barcode"
        program = generate_tspl_from_layout(default_layout, card_data)
        assert 'BARCODE 10,90,"CODE128",50,1,0,2,2,"TC-0042"' in program
        assert "QRCODE" not in program

    def test_no_code_without_barcode_data(self, default_layout):
        default_layout.barcode.mode = "qr"
        program = generate_tspl_from_layout(default_layout, LabelData(title="Card"))
        assert "QRCODE" not in program

    def test_settings_override_layout_printer(self, default_layout, card_data):
        default_layout.printer = PrinterSettings(density=8, speed=3)
        program = generate_tspl_from_layout(
            default_layout, card_data, PrinterSettings(density=12)
        )
        assert "DENSITY 12" in program
        assert "SPEED 3" in program


class TestLegacyLayout:
    """Фиксированный layout для обратной совместимости."""

    def test_all_fields(self, card_data):
        commands = _commands(label_data_to_tspl(card_data))
        assert 'TEXT 10,10,"0",0,2,2,"2023 Topps Chrome Shohei "' in commands
        assert 'TEXT 10,35,"0",0,1,1,"SKU: TC-0042"' in commands
        assert 'TEXT 200,35,"0",0,1,1,"NM"' in commands
        assert 'TEXT 10,55,"0",0,1,1,"LOT: L7"' in commands
        assert 'TEXT 280,10,"0",0,3,3,"$12.99"' in commands
        assert 'BARCODE 10,90,"CODE128",50,1,0,2,2,"TC-0042"' in commands

    def test_code_moves_below_90_when_rows_fill(self):
        """Код не выше 90 точек и не выше последней строки + 10."""
        config = LabelFieldConfig(barcode_mode="qr")
        program = label_data_to_tspl(LabelData(barcode="Q"), config)
        assert 'QRCODE 10,90,M,4,A,0,"Q"' in program

    def test_title_only(self):
        config = LabelFieldConfig(
            include_sku=False, include_condition=False, include_lot=False, barcode_mode="none"
        )
        commands = _commands(label_data_to_tspl(LabelData(title="Card", sku="S"), config))
        assert [c for c in commands if c.startswith("TEXT")] == ['TEXT 10,10,"0",0,2,2,"Card"']


class TestBoxedLayout:
    """Layout с рамками."""

    def test_separator_bars(self, card_data, all_fields):
        commands = _commands(generate_boxed_layout_tspl(card_data, all_fields))
        assert "BAR 0,50,406,2" in commands
        assert "BAR 0,158,406,2" in commands
        assert "BAR 203,0,2,50" in commands

    def test_qr_size_from_free_height(self, card_data):
        program = generate_boxed_layout_tspl(card_data, LabelFieldConfig(barcode_mode="qr"))
        assert 'QRCODE 20,60,M,4,A,0,"TC-0042"' in program

    def test_optimal_font_size(self):
        assert calculate_optimal_font_size("Pikachu", 396, 3) == 3
        assert calculate_optimal_font_size("x" * 100, 100) == 1
        assert calculate_optimal_font_size("ABCDEFGHIJ", 130) == 2


def test_sample_label():
    commands = _commands(build_sample_label())
    assert 'TEXT 10,20,"0",0,2,2,"ALOHA CARD SHOP"' in commands
    assert 'QRCODE 10,80,M,4,A,0,"https://alohacardshop.com"' in commands
    assert "BAR 10,190,386,2" in commands
