import pytest

from studienplan_export.config import Settings


# One section (KW 10 and KW 11 of 2016), three plan rows.
PLAN_ROWS = """<tr><td></td><td>2016/KW 10</td><td>2016/KW 11</td></tr>
<tr><td>Gruppe</td><td>07.03-12.03</td><td>14.03-19.03</td></tr>
<tr>
  <td bgcolor="#FF0000">FS151+BSc (FST) c</td>
  <td>Mo 8:00 Mathe(c)-Bö</td>
  <td bgcolor="#00FF00">ATIW [24]</td>
</tr>
<tr>
  <td bgcolor="#FF0000">FS152+BA (FIS) c</td>
  <td>Do/Fr DuA(1c2)-Xy</td>
  <td></td>
</tr>
<tr>
  <td bgcolor="#FF0000">ABB2015</td>
  <td>Di 9:00 Proj(z)-Bö</td>
  <td>Mi 10.30 Info zu Praxis</td>
</tr>
"""

# Lecturers in columns 0/1, cell types in columns 2/3 (rows 1-2).
SMALL_LEGEND = """<tr><td></td><td>Abkürzung</td><td></td><td></td></tr>
<tr><td>Bö</td><td>Böhm</td><td bgcolor="#00FF00"></td><td>ATIW</td></tr>
<tr><td>Xy</td><td>Xylander</td><td bgcolor="#0000FF"></td><td>SPE</td></tr>
"""

# (row, column) -> (text, bgcolor) at the positions Settings() expects:
# lecturers in columns 4/5, cell types in columns 7/8 (rows 12-14).
DEFAULT_LEGEND_CELLS = {
    (0, 1): ("Abkürzung", None),
    (0, 4): ("Dozentenkürzel", None),
    (0, 5): ("Name", None),
    (1, 4): ("Bö", None),
    (1, 5): ("Böhm", None),
    (2, 4): ("Xy", None),
    (2, 5): ("Xylander", None),
    (12, 7): ("", "#00FF00"),
    (12, 8): ("ATIW", None),
    (13, 7): ("", "#0000FF"),
    (13, 8): ("SPE", None),
    (14, 7): ("", "#FFFF00"),
    (14, 8): ("Praxis", None),
}


def _default_legend() -> str:
    rows = []
    for r in range(15):
        cells = []
        for c in range(9):
            text, color = DEFAULT_LEGEND_CELLS.get((r, c), ("", None))
            attr = f' bgcolor="{color}"' if color else ""
            cells.append(f"<td{attr}>{text}</td>")
        rows.append("<tr>" + "".join(cells) + "</tr>")
    return "\n".join(rows)


def _page(*parts: str) -> str:
    return "<html><body><table>\n" + "".join(parts) + "\n</table></body></html>\n"


PLAN_HTML = _page(PLAN_ROWS, SMALL_LEGEND)
DEFAULT_LEGEND_PLAN_HTML = _page(PLAN_ROWS, _default_legend())


@pytest.fixture
def plan_html() -> str:
    return PLAN_HTML


@pytest.fixture
def default_legend_plan_html() -> str:
    """The same plan with its legend where the default settings look."""
    return DEFAULT_LEGEND_PLAN_HTML


@pytest.fixture
def small_legend_settings() -> Settings:
    """Legend layout of PLAN_HTML."""
    return Settings(lecturer_columns=(0, 1), cell_type_columns=(2, 3), cell_type_rows=(1, 2))
