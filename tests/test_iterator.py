"""Tests for the csvfeed row iterator."""

import pytest

import csvfeed
from csvfeed import CsvIterator, open_iterator


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "rows.csv"
    path.write_bytes(b'# generated\nid,name\n1,"Smith, J"\n\n2,"multi\nline"\n3,last')
    return path


class TestCsvIterator:
    """Tests for row-by-row iteration."""

    def test_iterate_rows(self, csv_file):
        """Test iterating all rows of a file."""
        with open_iterator(csv_file, comment='#') as reader:
            rows = list(reader)
        assert rows == [
            ['id', 'name'],
            ['1', 'Smith, J'],
            ['2', 'multi\nline'],
            ['3', 'last'],
        ]

    @pytest.mark.parametrize('chunk_size', [1, 3, 16, 1024])
    def test_line_numbers(self, csv_file, chunk_size):
        """Test line_no of returned rows with different read sizes."""
        reader = CsvIterator(csv_file, comment='#', chunk_size=chunk_size)
        assert reader.line_no == 0
        seen = [(row[0], reader.line_no) for row in reader]
        assert seen == [('id', 2), ('1', 3), ('2', 5), ('3', 6)]
        assert reader.closed

    def test_early_exit(self, csv_file):
        """Test that breaking out closes the file."""
        with CsvIterator(csv_file, comment='#', chunk_size=4) as reader:
            for row in reader:
                if row[0] == '1':
                    break
            assert not reader.closed
        assert reader.closed
        assert reader.next() is None

    def test_next_returns_none_at_end(self, tmp_path):
        """Test the explicit next() method."""
        path = tmp_path / "one.csv"
        path.write_text("a;b\n")
        reader = CsvIterator(path, delimiter=';')
        assert reader.next() == ['a', 'b']
        assert reader.next() is None
        with pytest.raises(StopIteration):
            next(reader)

    def test_trim(self, tmp_path):
        """Test trimming in the iterator."""
        path = tmp_path / "trim.csv"
        path.write_text(" a , b \n")
        assert list(CsvIterator(path, trim=' ')) == [['a', 'b']]

    def test_empty_file(self, tmp_path):
        """Test iterating an empty file."""
        path = tmp_path / "empty.csv"
        path.write_text("")
        assert list(CsvIterator(path)) == []

    def test_file_not_found(self, tmp_path):
        """Test error for a missing file."""
        with pytest.raises(csvfeed.CsvIOError):
            open_iterator(tmp_path / "missing.csv")

    def test_invalid_chunk_size(self, csv_file):
        """Test error for a chunk size of zero."""
        with pytest.raises(csvfeed.CsvValidationError):
            CsvIterator(csv_file, chunk_size=0)
