from sample.foo import Foo


def test_greet():
    assert Foo("x").greet() == "hello x"
