"""Mapper configuration of the catalog and ledger models."""

from stockledger.core.db import Base


class TestRelationshipLoading:

    def test_no_relationship_uses_noload(self):
        relationships = [
            (mapper.class_.__name__, rel.key, rel.lazy)
            for mapper in Base.registry.mappers
            for rel in mapper.relationships
        ]

        assert ("ItemVariant", "item", "selectin") in relationships
        assert [r for r in relationships if r[2] == "noload"] == []
