"""
Core utilities: request payload parsing shared by the API views.
"""


def parse_id_list(raw):
    """
    Normalize an incoming id list: ints or numeric strings, duplicates dropped, order kept.
    Returns None if any entry is not a valid id.
    """
    if not isinstance(raw, (list, tuple)):
        return None
    ids = []
    for item in raw:
        try:
            value = int(item)
        except (ValueError, TypeError):
            return None
        if value <= 0:
            return None
        if value not in ids:
            ids.append(value)
    return ids
