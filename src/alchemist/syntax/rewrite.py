"""Find/replace rewrite rules over constituent sequences.

A rule's ``find`` pattern is a list of elements:

- word type short names: ``Adp Conj Det Noun NM Pro Verb VM``
- phrase short names: ``NP VP MP``
- quoted literals: ``"the"`` matches a leaf whose source lemma is ``the``

Each element may end in ``+`` (one or more), ``?`` (optional) or ``*`` (zero
or more). ``replace`` lists capture references ``$n`` (1-based, one per find
element) and quoted literals, which are emitted verbatim.

Example:
    find: [Det, NM*, Noun]
    replace: [$3, $2, $1]
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from alchemist.annotation.models import WordType, normalize_lemma
from alchemist.profile.models import ProfileValidationError, RewriteRuleConfig
from alchemist.syntax.tree import (
    PHRASE_SHORT_NAMES,
    ConstituentNode,
    LeafNode,
    PhraseNode,
)

_ELEMENT_RE = re.compile(r'^(?:"(?P<literal>[^"]*)"|(?P<name>[A-Za-z]+))(?P<quant>[+?*]?)$')
_CAPTURE_RE = re.compile(r"^\$(?P<index>\d+)$")
_LITERAL_RE = re.compile(r'^"(?P<literal>[^"]*)"$')

_PHRASE_TYPES = {short: long for long, short in PHRASE_SHORT_NAMES.items()}


@dataclass(frozen=True)
class PatternElement:
    kind: str  # "word", "phrase" or "literal"
    value: str
    quantifier: str = ""

    def matches(self, node: ConstituentNode) -> bool:
        if self.kind == "phrase":
            return isinstance(node, PhraseNode) and node.phrase_type == self.value
        if not isinstance(node, LeafNode) or node.is_punctuation:
            return False
        if self.kind == "literal":
            return node.lemma == self.value
        return node.part_of_speech is not None and node.part_of_speech.value == self.value

    @property
    def min_count(self) -> int:
        return 0 if self.quantifier in ("?", "*") else 1

    @property
    def max_count(self) -> int | None:
        return None if self.quantifier in ("+", "*") else 1


@dataclass(frozen=True)
class RewriteRule:
    """A compiled rewrite rule."""

    find: tuple[PatternElement, ...]
    replace: tuple[int | str, ...]
    """Capture indexes (0-based) or literal strings."""

    def match_at(
        self, nodes: list[ConstituentNode], start: int
    ) -> tuple[int, list[list[ConstituentNode]]] | None:
        """Match the pattern at ``start``; greedy with backtracking.

        Returns:
            (end index, captures per element) or None
        """
        return self._match(nodes, start, 0)

    def _match(self, nodes, position, element_index):
        if element_index == len(self.find):
            return position, []
        element = self.find[element_index]

        # Longest run of matching nodes this element could take
        run = 0
        limit = element.max_count
        while (
            position + run < len(nodes)
            and (limit is None or run < limit)
            and element.matches(nodes[position + run])
        ):
            run += 1

        for count in range(run, element.min_count - 1, -1):
            rest = self._match(nodes, position + count, element_index + 1)
            if rest is not None:
                end, captures = rest
                return end, [nodes[position : position + count]] + captures
        return None

    def build(self, captures: list[list[ConstituentNode]]) -> list[ConstituentNode]:
        output: list[ConstituentNode] = []
        for item in self.replace:
            if isinstance(item, int):
                output.extend(captures[item])
            else:
                output.append(LeafNode.literal(item))
        return output

    def apply(self, nodes: list[ConstituentNode]) -> tuple[list[ConstituentNode], int]:
        """Rewrite non-overlapping matches left to right.

        Returns:
            (new node list, number of rewrites)
        """
        result: list[ConstituentNode] = []
        rewrites = 0
        i = 0
        while i < len(nodes):
            matched = self.match_at(nodes, i)
            if matched is not None and matched[0] > i:
                end, captures = matched
                result.extend(self.build(captures))
                rewrites += 1
                i = end
            else:
                result.append(nodes[i])
                i += 1
        return result, rewrites


def _compile_element(text: str, field_name: str) -> PatternElement:
    m = _ELEMENT_RE.match(text.strip())
    if not m:
        raise ProfileValidationError(f"Invalid pattern element '{text}'", field_name)
    quantifier = m.group("quant")
    if m.group("literal") is not None:
        return PatternElement("literal", normalize_lemma(m.group("literal")), quantifier)

    name = m.group("name")
    word_type = WordType.from_short_name(name)
    if word_type is not None:
        return PatternElement("word", word_type.value, quantifier)
    if name in _PHRASE_TYPES and name != "Clause":
        return PatternElement("phrase", _PHRASE_TYPES[name], quantifier)
    raise ProfileValidationError(f"Unknown pattern element '{name}'", field_name)


def compile_rule(
    definition: RewriteRuleConfig, field_name: str = "syntax.rewrite_rules"
) -> RewriteRule:
    """Compile a rule from its profile form.

    Raises:
        ProfileValidationError: On unknown elements or out-of-range captures
    """
    find = tuple(_compile_element(text, field_name) for text in definition.find)
    replace: list[int | str] = []
    for text in definition.replace:
        text = text.strip()
        capture = _CAPTURE_RE.match(text)
        if capture:
            index = int(capture.group("index"))
            if not 1 <= index <= len(find):
                raise ProfileValidationError(
                    f"Capture ${index} out of range (pattern has {len(find)} elements)",
                    field_name,
                )
            replace.append(index - 1)
            continue
        literal = _LITERAL_RE.match(text)
        if literal:
            replace.append(literal.group("literal"))
            continue
        raise ProfileValidationError(f"Invalid replacement '{text}'", field_name)
    return RewriteRule(find=find, replace=tuple(replace))


def compile_rules(definitions: tuple[RewriteRuleConfig, ...]) -> list[RewriteRule]:
    return [
        compile_rule(definition, f"syntax.rewrite_rules[{i}]")
        for i, definition in enumerate(definitions)
    ]
