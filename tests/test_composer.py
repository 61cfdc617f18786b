"""Tests for the csvfeed row composer."""

import pytest

import csvfeed
from csvfeed import RowComposer, compose_string, parse_string


def make_composer(delimiter=',', newline='\n'):
    out = []
    return RowComposer(out.append, delimiter, newline), out


class TestQuoting:
    """Tests for quote() and escape()."""

    @pytest.mark.parametrize('text, expected', [
        ('', '""'),
        ('a', '"a"'),
        ("'a'", "\"'a'\""),
        (',', '","'),
        ('\n', '"\n"'),
        ('\r', '"\r"'),
        ('\r\n', '"\r\n"'),
        ('"', '""""'),
        ('a"b"', '"a""b"""'),
    ])
    def test_quote(self, text, expected):
        """Test unconditional quoting."""
        assert RowComposer.quote(text) == expected

    @pytest.mark.parametrize('text, expected', [
        ('', ''),
        ('a', 'a'),
        ("'a'", "'a'"),
        ('a b', 'a b'),
        ('~!#', '~!#'),
        (',', '","'),
        ('\n', '"\n"'),
        ('\r', '"\r"'),
        ('\r\n', '"\r\n"'),
        ('"', '""""'),
        (' a', '" a"'),
        ('a ', '"a "'),
        ('\ta', '"\ta"'),
        ('\x7f', '"\x7f"'),
        ('é', '"é"'),
    ])
    def test_escape(self, text, expected):
        """Test quoting only where needed."""
        composer, _ = make_composer()
        assert composer.escape(text) == expected

    def test_escape_uses_instance_delimiter(self):
        """Test that only the configured delimiter forces quoting."""
        composer, _ = make_composer(delimiter=';')
        assert composer.escape('a,b') == 'a,b'
        assert composer.escape('a;b') == '"a;b"'

    def test_escape_special_regex_delimiters(self):
        """Test delimiters that are special inside a regex character class."""
        for delimiter in (']', '^', '-', '\\'):
            composer, _ = make_composer(delimiter=delimiter)
            assert composer.escape('a' + delimiter + 'b') == '"a' + delimiter + 'b"'
            assert composer.escape('ab') == 'ab'


class TestComposeRows:
    """Tests for define_columns() and feed()."""

    def test_compose_fixed(self):
        """Test forced and automatic quoting with ',' and LF."""
        composer, out = make_composer(',', '\n')
        assert composer.delimiter == ','
        assert composer.newline == '\n'
        composer.define_columns(5, [1, 2])
        composer.feed(['col1', 'col2', 'col3', 'col4', 'col5'])
        composer.feed(['1', '2', '3', '4', '5'])
        composer.feed(['', '', '', '', '5'])
        assert out == [
            '"col1","col2",col3,col4,col5\n',
            '"1","2",3,4,5\n',
            '"","",,,5\n',
        ]

    def test_compose_semicolon(self):
        """Test quoting with ';' delimiter and CRLF."""
        composer, out = make_composer(';', '\r\n')
        composer.define_columns(5, [1, 2])
        composer.feed(['col1', 'col2', 'col3 ', ' col4', ';col5'])
        composer.feed(['', '', '\r', '"', '\t5'])
        assert out == [
            '"col1";"col2";"col3 ";" col4";";col5"\r\n',
            '"";"";"\r";"""";"\t5"\r\n',
        ]

    def test_compose_tab(self):
        """Test quoting with a tab delimiter."""
        composer, out = make_composer('\t', '\r\n')
        composer.define_columns(5, [1, 2])
        composer.feed(['', '', '\n', '\r\n', '5\t'])
        assert out == ['""\t""\t"\n"\t"\r\n"\t"5\t"\r\n']

    def test_default_newline_is_crlf(self):
        """Test the RFC4180 default line terminator."""
        out = []
        RowComposer(out.append).define_columns(2).feed(['a', 'b'])
        assert out == ['a,b\r\n']

    def test_forced_quoting(self):
        """Test that forced columns are quoted regardless of content."""
        composer, out = make_composer(newline='\r\n')
        composer.define_columns(3, {1})
        composer.feed(['x', 'y', 'z'])
        composer.feed(['x', 'y z', 'z,'])
        assert out == ['"x",y,z\r\n', '"x",y z,"z,"\r\n']

    def test_column_count_enforced(self):
        """Test that rows with too few or too many fields are rejected."""
        composer, out = make_composer()
        composer.define_columns(3)
        with pytest.raises(csvfeed.CsvRowShapeError):
            composer.feed(['a', 'b'])
        with pytest.raises(csvfeed.CsvRowShapeError):
            composer.feed(['a', 'b', 'c', 'd'])
        assert out == []
        composer.feed(['a', 'b', 'c'])
        assert out == ['a,b,c\n']

    def test_feed_without_columns(self):
        """Test feeding before define_columns()."""
        composer, out = make_composer()
        with pytest.raises(csvfeed.CsvRowShapeError):
            composer.feed(['a'])
        assert out == []

    def test_feed_accepts_iterables(self):
        """Test feeding a generator of fields."""
        composer, out = make_composer()
        composer.define_columns(3)
        composer.feed(str(i) for i in range(3))
        assert out == ['0,1,2\n']

    def test_line_callback_error_propagates(self):
        """Test that errors raised by the line callback are not wrapped."""
        def on_line(line):
            raise KeyError(line)

        composer = RowComposer(on_line).define_columns(1)
        with pytest.raises(KeyError):
            composer.feed(['a'])

    def test_default_callback_discards_output(self):
        """Test the no-output default callback."""
        composer = RowComposer()
        assert composer.define_columns(1).feed(['a']) is composer


class TestDefineColumns:
    """Tests for column definition validation."""

    def test_define_and_clear(self):
        """Test redefining columns after clear()."""
        composer, _ = make_composer()
        composer.define_columns(1)
        assert composer.num_columns == 1
        with pytest.raises(csvfeed.CsvValidationError):
            composer.define_columns(2)
        composer.clear()
        assert composer.num_columns == 0
        composer.define_columns(2, [2])
        assert composer.num_columns == 2

    @pytest.mark.parametrize('num_cols, forced', [
        (0, []),
        (-1, []),
        (2, [0]),
        (2, [3]),
        (2, [-1]),
    ])
    def test_invalid_definitions(self, num_cols, forced):
        """Test zero column counts and out of range quote indices."""
        composer, _ = make_composer()
        with pytest.raises(csvfeed.CsvValidationError):
            composer.define_columns(num_cols, forced)

    @pytest.mark.parametrize('forced', [[1], [2], [1, 2]])
    def test_valid_indices(self, forced):
        """Test 1-based quote indices within range."""
        composer, _ = make_composer()
        composer.define_columns(2, forced)
        assert composer.num_columns == 2

    def test_failed_definition_leaves_columns_undefined(self):
        """Test that a rejected definition does not stick."""
        composer, _ = make_composer()
        with pytest.raises(csvfeed.CsvValidationError):
            composer.define_columns(2, [3])
        composer.define_columns(2)
        assert composer.num_columns == 2

    @pytest.mark.parametrize('delimiter', ['', ';;', '"', '\r', '\n'])
    def test_invalid_delimiter(self, delimiter):
        """Test error for unusable delimiters."""
        with pytest.raises(csvfeed.CsvValidationError):
            RowComposer(delimiter=delimiter)

    def test_empty_newline(self):
        """Test error for an empty line terminator."""
        with pytest.raises(csvfeed.CsvValidationError):
            RowComposer(newline='')


class TestRoundTrip:
    """Tests composing and parsing back."""

    ROWS = [
        ['plain', 'with,comma', 'with "quotes"'],
        ['  spaced  ', '', 'multi\nline'],
        ['cr\ronly', 'crlf\r\nend', '"'],
        ['ünïcödé', '€', '\t tab'],
        ['', '', ''],
        ['"leading', 'trailing"', ',,,'],
    ]

    @pytest.mark.parametrize('delimiter', [',', ';', '\t', '|'])
    @pytest.mark.parametrize('newline', ['\r\n', '\n', '\r'])
    def test_round_trip(self, delimiter, newline):
        """Test that parsing composed text reproduces the fields."""
        text = compose_string(self.ROWS, delimiter=delimiter, newline=newline)
        assert parse_string(text, delimiter=delimiter) == self.ROWS

    def test_round_trip_forced_quotes(self):
        """Test that forced quoting does not change parsed values."""
        text = compose_string(self.ROWS, forced_quote=[1, 3])
        assert parse_string(text) == self.ROWS

    def test_compose_string(self):
        """Test joining composed lines."""
        assert compose_string([['a', 'b'], ['c d', 'e,f']], newline='\n') == 'a,b\nc d,"e,f"\n'
        assert compose_string([]) == ''

    def test_compose_string_ragged_rows(self):
        """Test that rows must match the first row's length."""
        with pytest.raises(csvfeed.CsvRowShapeError):
            compose_string([['a', 'b'], ['c']])
