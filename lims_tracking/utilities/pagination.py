"""
Pagination utility functions for API endpoints

Every list endpoint answers with the same envelope:
{'results': [...], 'count': int, 'next': int | None, 'previous': int | None}
"""

PAGE_SIZE = 20
SMALL_PAGE_SIZE = 10


def get_pagination_params(request, page_size=PAGE_SIZE):
    """
    Extract pagination parameters from request
    The page size is fixed per endpoint, only the 1-based page number is read.
    Returns: (page, limit, offset)
    """
    try:
        page = int(request.GET.get('page', 1))
    except (ValueError, TypeError):
        page = 1

    page = max(1, page)
    offset = (page - 1) * page_size

    return page, page_size, offset


def page_metadata(total_records, page, limit):
    """
    Compute next/previous page numbers from the total count.

    The number of rows a query happened to return is never consulted, it is
    wrong whenever filters run after the fetch.
    """
    has_next = page * limit < total_records
    has_previous = page > 1

    return {
        'count': total_records,
        'next': page + 1 if has_next else None,
        'previous': page - 1 if has_previous else None,
        'has_next': has_next,
        'has_previous': has_previous,
    }


def create_pagination_response(data, total_records, page, limit):
    """
    Create standardized pagination response
    """
    meta = page_metadata(total_records, page, limit)

    return {
        'results': data,
        'count': meta['count'],
        'next': meta['next'],
        'previous': meta['previous'],
    }


def paginate_cursor(collection, query, page, limit, sort=('created_at', -1)):
    """
    Paginate a raw collection query and return (documents, total_records)
    """
    total_records = collection.count_documents(query)
    offset = (page - 1) * limit

    cursor = collection.find(query)
    if sort:
        cursor = cursor.sort(*sort)
    paginated_data = list(cursor.skip(offset).limit(limit))

    return paginated_data, total_records


def paginate_list(data_list, page, limit):
    """
    Paginate a list and return paginated data with metadata
    """
    total_records = len(data_list)
    offset = (page - 1) * limit

    paginated_data = data_list[offset:offset + limit]

    return paginated_data, total_records
