"""Tests for the contour fan-out helper."""

import threading

import pytest


class TestMapContours:
    """Tests for map_contours."""

    def test_inline_for_small_batches(self):
        """Test that small batches run on the calling thread."""
        from shapedetect.parallel import map_contours

        threads = set()

        def func(item):
            threads.add(threading.current_thread().name)
            return item * 2

        result = map_contours(func, [1, 2, 3], min_items=10)

        assert result == [2, 4, 6]
        assert threads == {threading.current_thread().name}

    def test_parallel_keeps_order(self):
        """Test that pooled results come back in input order."""
        from shapedetect.parallel import map_contours

        items = list(range(50))

        result = map_contours(lambda i: i * i, items, min_items=10, max_workers=4)

        assert result == [i * i for i in items]

    def test_none_results_compacted(self):
        """Test that rejected items leave no gaps."""
        from shapedetect.parallel import map_contours

        items = list(range(30))

        result = map_contours(lambda i: i if i % 3 == 0 else None, items, min_items=10)

        assert result == [i for i in items if i % 3 == 0]

    def test_exception_propagates(self):
        """Test that worker errors reach the caller."""
        from shapedetect.parallel import map_contours

        def func(item):
            if item == 17:
                raise ValueError("bad contour")
            return item

        with pytest.raises(ValueError):
            map_contours(func, list(range(30)), min_items=10)

    def test_compact(self):
        """Test slot compaction."""
        from shapedetect.parallel import compact

        assert compact([None, 1, None, 2]) == [1, 2]
