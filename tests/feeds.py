"""Helpers for building feed CSV text in tests."""

import csv
import io
import json


def make_feed(*rows, columns=None) -> str:
    """
    Render dicts as a feed.  Non-string values (lists, dicts) are JSON
    encoded; the header is the union of keys in first-seen order unless
    ``columns`` is given.
    """
    if columns is None:
        columns = []
        for row in rows:
            for key in row:
                if key not in columns:
                    columns.append(key)
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=columns, lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({k: _cell(v) for k, v in row.items()})
    return buf.getvalue()


def product_row(sku, **extra) -> dict:
    row = {"sku": sku, "name": f"Product {sku}", "regular_price": "19.99"}
    row.update(extra)
    return row


def _cell(value):
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    return value
