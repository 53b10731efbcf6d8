from typing import Optional

import pytest

from multisweeper import CellView


@pytest.fixture
def cell():
    """Factory for snapshot cells; opened cells default to a zero mine count."""

    def make(
        row: int,
        col: int,
        opened: bool,
        hint: Optional[int] = None,
        marker_count: int = 0,
    ) -> CellView:
        return CellView(
            row=row,
            col=col,
            opened=opened,
            marker_count=marker_count,
            hint=hint,
            mine_count=0 if opened else None,
        )

    return make
