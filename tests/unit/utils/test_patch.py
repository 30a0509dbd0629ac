import airspeed

from vtlemulator.utils import templating
from vtlemulator.utils.patch import Patch, get_defining_object, patch


def greet(name):
    return f"hello {name}"


class Greeter:
    def greet(self, name):
        return f"greeter: hello {name}"

    @staticmethod
    def shout(name):
        return f"HELLO {name}"


def test_get_defining_object():
    assert get_defining_object(Greeter.greet) is Greeter
    assert get_defining_object(Greeter.shout) is Greeter
    assert get_defining_object(greet).__name__ == __name__
    greeter = Greeter()
    assert get_defining_object(greeter.greet) is greeter


def test_patch_context_manager():
    def replacement(name):
        return f"bye {name}"

    with Patch(get_defining_object(greet), "greet", replacement) as p:
        assert p.is_applied
        assert greet("vtl") == "bye vtl"

    assert not p.is_applied
    assert greet("vtl") == "hello vtl"


def test_patch_function():
    p = Patch.function(greet, lambda target, name: target(name).upper())
    p.apply()
    try:
        assert greet("vtl") == "HELLO VTL"
    finally:
        p.undo()
    assert greet("vtl") == "hello vtl"


def test_patch_decorator_on_method():
    @patch(target=Greeter.greet)
    def suffixed(target, self, name):
        return target(self, name) + "!"

    try:
        assert Greeter().greet("vtl") == "greeter: hello vtl!"
    finally:
        suffixed.patch.undo()
    assert Greeter().greet("vtl") == "greeter: hello vtl"


def test_patch_decorator_without_target():
    @patch(target=greet, pass_target=False)
    def replacement(name):
        return f"replaced {name}"

    try:
        assert greet("vtl") == "replaced vtl"
    finally:
        replacement.patch.undo()
    assert greet("vtl") == "hello vtl"


def test_patch_decorator_on_bound_method():
    greeter = Greeter()

    @patch(target=greeter.greet)
    def replacement(target, name):
        return f"patched: {target(name)}"

    try:
        assert greeter.greet("vtl") == "patched: greeter: hello vtl"
        assert Greeter().greet("vtl") == "greeter: hello vtl"
    finally:
        replacement.patch.undo()
    assert greeter.greet("vtl") == "greeter: hello vtl"


def test_engine_patch_is_applied():
    p = templating.calculate.patch
    assert p.is_applied
    assert p.obj is airspeed.operators.VariableExpression
    assert airspeed.operators.VariableExpression.calculate is p.new
