"""Feature packages: catalog, importer, bookmarks."""
