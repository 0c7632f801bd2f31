"""Helpers for handling paginated views."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Union

from flask import request

PAGE_SIZE = 10


def get_page(param: str = "page", default: int = 1) -> int:
    """Return a validated page number from the query string.

    Parameters
    ----------
    param:
        Query string parameter containing the requested page.
    default:
        Fallback value used when the parameter is missing, invalid or
        smaller than one.

    Returns
    -------
    int
        A page number of at least ``1``.
    """

    value = request.args.get(param, type=int)
    if value is None or value < 1:
        return default
    return value


def build_pagination_args(
    *,
    page_param: str = "page",
    extra_params: Mapping[str, Any] | None = None,
) -> Dict[str, Union[str, List[str]]]:
    """Assemble arguments for pagination links.

    Every current query parameter except the page number is carried over so
    search, state filter and sort survive page changes.
    """

    args: Dict[str, Union[str, List[str]]] = {}
    for key, values in request.args.lists():
        if key == page_param:
            continue
        if not values:
            continue
        if len(values) == 1:
            args[key] = values[0]
        else:
            args[key] = values
    if extra_params:
        for key, value in extra_params.items():
            if value is None or key in args:
                continue
            if isinstance(value, (list, tuple)):
                args[key] = [str(v) for v in value]
            else:
                args[key] = str(value)
    return args
