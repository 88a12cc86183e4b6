"""
Naming utilities for safe code generation.

Handles case conversions and the table name -> struct/module name
derivation used across the generator.
"""

import re


# Irregular plurals that don't follow standard rules (plural -> singular)
_IRREGULAR_SINGULARS = {
    "people": "person",
    "children": "child",
    "men": "man",
    "women": "woman",
    "feet": "foot",
    "teeth": "tooth",
    "geese": "goose",
    "mice": "mouse",
    "oxen": "ox",
    "data": "datum",
    "media": "medium",
    "criteria": "criterion",
    "indices": "index",
    "matrices": "matrix",
    "vertices": "vertex",
    "statuses": "status",
    "buses": "bus",
    "viruses": "virus",
    "campuses": "campus",
    "heroes": "hero",
    "potatoes": "potato",
    "tomatoes": "tomato",
    "echoes": "echo",
    "leaves": "leaf",
    "knives": "knife",
    "wives": "wife",
    "lives": "life",
    "halves": "half",
    "shelves": "shelf",
    "wolves": "wolf",
}

# Words that are the same in singular and plural
_UNCOUNTABLE = {
    "news",
    "series",
    "species",
    "equipment",
    "information",
    "metadata",
    "settings",
    "status",
    "sheep",
    "fish",
}


def _clean_basic(name: str) -> str:
    """Basic name cleanup - replace invalid characters."""
    cleaned = re.sub(r"[^a-zA-Z0-9_]", "_", name)
    return cleaned.strip("_") or "table"


def to_snake_case(name: str) -> str:
    """Convert to snake_case."""
    name = _clean_basic(str(name))

    # Insert underscore before uppercase letters
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)

    # Convert to lowercase and clean up multiple underscores
    name = name.lower()
    name = re.sub(r"_+", "_", name)

    return name.strip("_")


def to_pascal_case(name: str) -> str:
    """Convert to PascalCase."""
    snake = to_snake_case(name)
    parts = snake.split("_")

    # All parts title case
    return "".join(part.capitalize() for part in parts if part)


def singularize(word: str) -> str:
    """
    Convert a plural English word to its singular form.

    Only the last word of a CamelCase or snake_case name is changed, so
    ``UserRoles`` becomes ``UserRole`` and ``user_roles`` becomes ``user_role``.

    Examples:
        >>> singularize("Todos")
        'Todo'
        >>> singularize("Categories")
        'Category'
        >>> singularize("Addresses")
        'Address'
    """
    if not word:
        return word

    # Work on the last word only
    match = re.match(r"^(.*?)([A-Z]?[a-z0-9]+)$", word)
    if match and match.group(1):
        prefix, last_word = match.groups()
        return prefix + singularize(last_word)

    lower_word = word.lower()

    if lower_word in _UNCOUNTABLE:
        return word

    if lower_word in _IRREGULAR_SINGULARS:
        singular = _IRREGULAR_SINGULARS[lower_word]
        if word[0].isupper():
            return singular.capitalize()
        return singular

    if lower_word.endswith("ies") and len(word) > 3:
        # categories -> category
        return word[:-3] + ("Y" if word[-3].isupper() else "y")
    if lower_word.endswith(("sses", "shes", "ches", "xes", "zes")):
        # addresses -> address, boxes -> box
        return word[:-2]
    if lower_word.endswith("s") and not lower_word.endswith(("ss", "us", "is")):
        return word[:-1]

    return word


def struct_name_for_table(table_name: str) -> str:
    """Struct name for a table: the singular PascalCase form.

    Examples:
        >>> struct_name_for_table("todos")
        'Todo'
        >>> struct_name_for_table("user_roles")
        'UserRole'
    """
    return singularize(to_pascal_case(table_name))


def module_name_for_table(table_name: str) -> str:
    """Rust module (and file) name for a table."""
    return to_snake_case(table_name)
