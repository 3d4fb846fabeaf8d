from pydantic import BaseModel, ConfigDict, model_validator

from circuit_challenge.engine.topology import Coordinate


class Edge(BaseModel):
    """ Connector between two adjacent cells. Unordered: a is always the smaller coordinate"""
    model_config = ConfigDict(frozen=True)

    a: Coordinate
    b: Coordinate
    label: int

    @model_validator(mode="before")
    @classmethod
    def order_endpoints(cls, data):
        if isinstance(data, dict) and "a" in data and "b" in data:
            a, b = Coordinate(*data["a"]), Coordinate(*data["b"])
            if b < a:
                data = {**data, "a": b, "b": a}
        return data

    @property
    def key(self) -> frozenset:
        return frozenset((self.a, self.b))

    def other(self, coord: Coordinate) -> Coordinate:
        return self.b if coord == self.a else self.a
