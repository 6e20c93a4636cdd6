"""Static catalog of test categories."""

from collections.abc import Sequence

from qa_suite_runner.models.category import Category


class CategoryNotFoundError(Exception):
    """Raised when a category name is not in the catalog."""


CATEGORIES: Sequence[Category] = (
    Category(
        name="smoke",
        title="Smoke Tests",
        tag="smoke",
        critical=True,
        description="Critical functionality tests",
    ),
    Category(
        name="api",
        title="API Tests",
        tag="api",
        critical=True,
        description="API endpoint tests",
    ),
    Category(
        name="e2e",
        title="E2E Tests",
        tag="e2e",
        description="End-to-end workflow tests",
    ),
    Category(
        name="performance",
        title="Performance Tests",
        tag="performance",
        description="Performance and load tests",
    ),
    Category(
        name="accessibility",
        title="Accessibility Tests",
        tag="a11y",
        description="Accessibility compliance tests",
    ),
    Category(
        name="security",
        title="Security Tests",
        tag="security",
        description="Security vulnerability tests",
    ),
)

QUICK_CATEGORY_NAMES: Sequence[str] = ("smoke", "api")


def get_category(name: str) -> Category:
    """Look up a catalog category by name.

    Raises:
        CategoryNotFoundError: If no category with the given name exists

    """
    for category in CATEGORIES:
        if category.name == name:
            return category

    available = [c.name for c in CATEGORIES]
    raise CategoryNotFoundError(
        f"Category '{name}' not found. Available categories: {available}"
    )


def quick_categories() -> Sequence[Category]:
    """Return the minimal critical subset run by quick mode."""
    return tuple(get_category(name) for name in QUICK_CATEGORY_NAMES)
