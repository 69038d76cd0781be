# Minimal type model for return type inference: mixed, object-of-class, constant string.

from pydantic import BaseModel


class Type(BaseModel):
    """Base for inferred types. Types are immutable and compare by value."""

    model_config = {"frozen": True}

    def describe(self) -> str:
        raise NotImplementedError


class MixedType(Type):
    def describe(self) -> str:
        return "mixed"


class ObjectType(Type):
    class_name: str

    def describe(self) -> str:
        return self.class_name


class ConstantStringType(Type):
    """A string whose value is known statically, e.g. 'Foo' or Foo::class."""

    value: str

    def get_value(self) -> str:
        return self.value

    def describe(self) -> str:
        return f"'{self.value}'"
