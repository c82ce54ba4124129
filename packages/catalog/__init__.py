from packages.catalog.catalog import (
    Catalog,
    CatalogAction,
    CatalogTrigger,
    StarterCourse,
    StarterDay,
    load_catalog,
    load_starter_course,
)

__all__ = [
    "Catalog",
    "CatalogAction",
    "CatalogTrigger",
    "StarterCourse",
    "StarterDay",
    "load_catalog",
    "load_starter_course",
]
