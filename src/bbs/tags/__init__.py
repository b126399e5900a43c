"""Main tags, recommended tags and the tag tree."""
