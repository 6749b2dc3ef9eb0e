"""
Filter builders shared by every list and search endpoint
"""
import re


def active_filter():
    """
    Soft-delete predicate: is_active is True, or the field is absent (legacy data)
    """
    return {'$or': [{'is_active': True}, {'is_active': {'$exists': False}}]}


def text_filter(search_text, fields):
    """
    Case-insensitive substring match of search_text against any of fields
    """
    pattern = re.escape(search_text.strip())
    return {'$or': [{field: {'$regex': pattern, '$options': 'i'}} for field in fields]}


def build_filter(search_text=None, fields=(), active_only=True, also_match=(), extra=()):
    """
    Compose the soft-delete predicate with an optional text search.

    Args:
        search_text: free text from the ``q`` parameter
        fields: document fields the text is matched against
        active_only: include the soft-delete predicate
        also_match: extra conditions OR-ed with the text match, e.g. lots
            whose parent job matched the text in another collection
        extra: extra conditions AND-ed with everything else
    """
    clauses = []
    if active_only:
        clauses.append(active_filter())

    if search_text and search_text.strip():
        text_clause = text_filter(search_text, fields) if fields else {'$or': []}
        text_clause['$or'].extend(also_match)
        if text_clause['$or']:
            clauses.append(text_clause)

    clauses.extend(extra)

    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {'$and': clauses}


def contains_text(value, needle):
    """In-memory counterpart of text_filter for values joined from other collections"""
    if value is None or not needle:
        return False
    return needle.strip().lower() in str(value).lower()
