"""Application wiring."""

from sample.foo import Foo, make_foo
from sample.store import MemoryStorage


def main() -> None:
    foo = make_foo("world")
    storage = MemoryStorage()
    storage.save("greeting", foo.greet().encode())
    print(Foo("direct").greet())
