# ris_core/common/api/pagination.py
from __future__ import annotations

from rest_framework.pagination import PageNumberPagination


class DefaultPagination(PageNumberPagination):
    """
    Project-wide page contract: { count, next, previous, results }.
    Pages default to 50 rows; clients may ask for up to 500.
    """
    page_size = 50
    page_size_query_param = "page_size"
    max_page_size = 500
