import inspect

import pytest

import cafe


def documented_callables():
    """module functions and class methods defined in cafe, constructors and errors aside"""
    for name, obj in vars(cafe).items():
        if getattr(obj, "__module__", None) != "cafe":
            continue
        if inspect.isfunction(obj):
            yield name, obj
        elif inspect.isclass(obj) and not issubclass(obj, cafe.CafeError):
            for attr, member in vars(obj).items():
                if isinstance(member, (staticmethod, classmethod)):
                    member = member.__func__
                elif isinstance(member, property):
                    member = member.fget
                if inspect.isfunction(member) and not attr.startswith("__") and member.__module__ == "cafe":
                    yield f"{name}.{attr}", member


@pytest.mark.parametrize("name, function", list(documented_callables()))
def test_every_function_has_a_docstring(name, function):
    assert (function.__doc__ or "").strip(), f"{name} has no docstring"
