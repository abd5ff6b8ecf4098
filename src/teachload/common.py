import re

import polars as pl
from environs import Env
from rich.console import Console
from rich.table import Table

env = Env()
env.read_env()

console = Console()

INSTRUCTOR_DELIMITERS = re.compile(r"[;/]")


def title_case_name(name: str) -> str:
    """Title-case each word of a name, including hyphen and apostrophe parts."""
    if not isinstance(name, str):
        return name

    def _cap(part: str) -> str:
        return part[:1].upper() + part[1:].lower() if part else part

    words = []
    for word in re.sub(r"\s+", " ", name.strip()).split(" "):
        hyphens = []
        for chunk in word.split("-"):
            hyphens.append("'".join(_cap(p) for p in chunk.split("'")))
        words.append("-".join(hyphens))
    return " ".join(words)


def cell_text(value: object) -> str | None:
    """Render a worksheet cell as text; blanks and `#N/A` become None."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = str(value).strip()
    if text in ("", "#N/A"):
        return None
    return text


def show_frame(title: str, df: pl.DataFrame, limit: int = 25) -> None:
    """Print a dataframe as a rich table, truncated to `limit` rows."""
    table = Table(title=title, show_lines=False)
    for col in df.columns:
        table.add_column(col)
    for row in df.head(limit).iter_rows():
        table.add_row(*["" if v is None else str(v) for v in row])
    console.print(table)
    if df.height > limit:
        console.log(f"[yellow]... {df.height - limit} more rows not shown[/yellow]")
