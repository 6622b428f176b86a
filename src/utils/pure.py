from typing import List, Literal, Optional, Sequence

from db.models import Product


def format_money(amount: float) -> str:
    """Two-decimal dollar amount, e.g. ``$15.50``; negatives as ``-$1.00``."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):.2f}"


def generate_markdown_table(
    headers: Optional[Sequence[object]],
    rows: Sequence[Sequence[object]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: Column headers, or None to use the first row as headers.
        rows: Table rows; cells are converted with str().
        aligns: 'l', 'c' or 'r' per column. Defaults to all center.

    Returns:
        str: Markdown formatted table, empty when there are no rows.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    header_cells = [str(h) for h in headers]
    body = [[str(cell).replace("|", "\\|") for cell in row] for row in rows]

    if aligns is None:
        aligns = ["c"] * len(header_cells)
    elif len(aligns) != len(header_cells):
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {"l": ":---", "c": ":---:", "r": "---:"}

    lines = [
        "| " + " | ".join(header_cells) + " |",
        "| " + " | ".join(align_map[a] for a in aligns) + " |",
    ]
    lines += ["| " + " | ".join(row) + " |" for row in body]
    return "\n".join(lines)


def product_table(product: Product) -> str:
    rows = [
        ["ID", product.id],
        ["Name", product.name],
        ["Price", format_money(product.price)],
        ["Stock", product.stock],
        ["Image", product.image_url],
    ]
    return generate_markdown_table(["Attribute", "Value"], rows, ["l", "l"])

