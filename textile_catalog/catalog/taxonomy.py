"""Textile category taxonomy and product URL derivation.

Products are classified on three levels. The meaning of the second and
third level depends on the main category:

    fabrics structure > <structure>
    woven fabrics     > greige | rfd | solid | printed > <fabric type>
    woven fabrics     > <other sub category>
    fabrics finish    > <finish>

Every other main category is a flat listing.
"""

from urllib.parse import urlencode

CATALOG_ROOT_PATH = "/products"

FABRICS_STRUCTURE = "fabrics structure"
WOVEN_FABRICS = "woven fabrics"
FABRICS_FINISH = "fabrics finish"

# Woven sub categories that are fabric types and carry a nested category
WOVEN_FABRIC_TYPES = frozenset({"greige", "rfd", "solid", "printed"})


def _clean(value: str | None) -> str:
    return value.strip() if value else ""


def category_params(
    main_category: str | None,
    sub_category: str | None,
    nested_category: str | None = None,
) -> list[tuple[str, str]]:
    """Query parameters that locate a product's listing page.

    Taxonomy keys are compared case-insensitively; parameter values keep
    the caller's spelling.

    Args:
        main_category: Top-level category.
        sub_category: Second-level category.
        nested_category: Third-level qualifier.

    Returns:
        Ordered (key, value) pairs.
    """
    main = _clean(main_category)
    sub = _clean(sub_category)
    nested = _clean(nested_category)

    params: list[tuple[str, str]] = []
    if not main:
        return params

    params.append(("category", main))
    if not sub:
        return params

    key = main.lower()
    if key in (FABRICS_STRUCTURE, FABRICS_FINISH):
        params.append(("subCategory", sub))
    elif key == WOVEN_FABRICS:
        if sub.lower() in WOVEN_FABRIC_TYPES:
            params.append(("type", sub))
            if nested:
                params.append(("fabricType", nested))
        else:
            params.append(("subCategory", sub))

    return params


def build_product_url(
    main_category: str | None,
    sub_category: str | None,
    nested_category: str | None = None,
) -> str:
    """Derive the canonical catalog URL for a product.

    Pure function of the category fields.

    Args:
        main_category: Top-level category.
        sub_category: Second-level category.
        nested_category: Third-level qualifier.

    Returns:
        ``/products`` when no category applies, otherwise
        ``/products?category=...`` with the taxonomy-specific parameters.

    Example:
        >>> build_product_url("woven fabrics", "greige", "cotton")
        '/products?category=woven+fabrics&type=greige&fabricType=cotton'
    """
    params = category_params(main_category, sub_category, nested_category)
    if not params:
        return CATALOG_ROOT_PATH
    return f"{CATALOG_ROOT_PATH}?{urlencode(params)}"
