from enum import Enum, auto


class PortSide(Enum):
    INPUT = "input"
    OUTPUT = "output"

    @property
    def opposite(self) -> "PortSide":
        return PortSide.OUTPUT if self is PortSide.INPUT else PortSide.INPUT

    @staticmethod
    def parse(value) -> "PortSide":
        if isinstance(value, PortSide):
            return value
        try:
            return PortSide(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown port side '{value}', expected 'input' or 'output'")


class ContentKind(Enum):
    PLAIN = "plain"
    TEMPLATE = "template"
    COMPONENT = "component"


class CurveMode(Enum):
    SYMMETRIC = auto()
    OPEN = auto()
    CLOSE = auto()
    OTHER = auto()


class IdPolicy(Enum):
    SEQUENTIAL = auto()
    RANDOM = auto()


class EditorMode(Enum):
    EDIT = "edit"
    FIXED = "fixed"
    VIEW = "view"
