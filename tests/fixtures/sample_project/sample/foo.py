"""Foo and a factory for it."""


class Foo:
    """A thing with a name."""

    def __init__(self, name: str) -> None:
        self.name = name

    def greet(self) -> str:
        return "hello " + self.name


def make_foo(name: str) -> Foo:
    return Foo(name)
