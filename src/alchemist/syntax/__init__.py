"""Constituent trees and rewrite rules.

The transducer lives in ``alchemist.syntax.transducer`` and is imported from
there; it depends on the morphology engine, which itself uses the tree types.
"""

from alchemist.syntax.rewrite import RewriteRule, compile_rule, compile_rules
from alchemist.syntax.tree import (
    ConstituentNode,
    LeafNode,
    PhraseNode,
    StructureError,
    build_tree,
)

__all__ = [
    "RewriteRule",
    "compile_rule",
    "compile_rules",
    "ConstituentNode",
    "LeafNode",
    "PhraseNode",
    "StructureError",
    "build_tree",
]
