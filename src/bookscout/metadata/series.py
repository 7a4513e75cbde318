# ABOUTME: Series position normalization: numbers become strings, strings pass through.
# ABOUTME: Positions are display text ("1", "2.5", "1/1", "1-3"), never arithmetic values.


def normalize_series_position(value: object) -> str | None:
    """Normalize a scraped series position into its canonical display text.

    Integers (and integral floats) become their decimal text, other floats
    their repr, and strings are returned unchanged, including fraction or
    range forms like "1/1". Anything else, booleans included, is treated as
    absent.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    if isinstance(value, str):
        return value
    return None
