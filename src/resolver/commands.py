"""Test command resolution for editions and for the whole project."""

from __future__ import annotations

from typing import Optional

from editions.models import Edition


class TestCommandResolver:
    """Produces the literal command line that runs an edition's tests."""

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        package_manager: str = "npm",
        edition_template: Optional[str] = None,
        runtime: str = "node",
    ):
        """Initialize the resolver.

        Args:
            package_manager: Used for the whole-project command ("npm test").
            edition_template: Optional template with {directory}, {test} and
                {runtime} placeholders, e.g. a plugin tester invocation.
            runtime: Runtime executable for the default edition command.
        """
        self.package_manager = package_manager
        self.edition_template = edition_template
        self.runtime = runtime

    def for_edition(self, edition: Edition) -> str:
        test = edition.entry_path("test") or edition.entry_path("index")
        if self.edition_template:
            return self.edition_template.format(
                directory=edition.directory,
                test=test or "",
                runtime=self.runtime,
            )
        if not test:
            raise ValueError(f"Edition [{edition.directory}] has no test or index entry")
        return f"{self.runtime} ./{test}"

    def for_project(self) -> str:
        return f"{self.package_manager} test"
