"""Translation orchestrator.

Composes the pipeline for one conlang:

    text -> tokens (parser or tagger) -> tree -> lexicon lookup / generation
         -> inflection -> transduction -> output text

Parse and structure errors abort the request (unless tagger fallback is
allowed for parse errors). Morphology gaps and unmodeled attributes become
diagnostics on the result. A cancelled request raises TranslationCancelled;
every reservation it held is abandoned and no new word is committed. New
words are committed together, only after all of them have been generated.
"""

from __future__ import annotations

import logging

from alchemist.annotation.models import AnnotatedToken
from alchemist.annotation.parser import AnnotationParser, ParseError, has_annotations
from alchemist.annotation.tagger import BasicTagger, Tagger
from alchemist.config import Settings
from alchemist.lexicon.cache import LexiconCache, LexiconKey
from alchemist.lexicon.models import Lexeme, attribute_key
from alchemist.morphology.engine import MorphologyEngine
from alchemist.pipeline.schemas import (
    TRANSLATION_MODES,
    Diagnostic,
    TranslationRequest,
    TranslationResult,
)
from alchemist.profile.models import ConlangProfile
from alchemist.synthesis.generator import WordGenerator, seed_for
from alchemist.syntax.transducer import SyntaxTransducer
from alchemist.syntax.tree import LeafNode, PhraseNode, build_tree

logger = logging.getLogger(__name__)


class TranslationCancelled(Exception):
    """Raised when a request's cancel event is set before the result is ready."""


def join_output(leaves: list[LeafNode]) -> str:
    """Join output words with spaces; punctuation attaches to the previous word."""
    parts: list[str] = []
    for leaf in leaves:
        text = leaf.output()
        if not text:
            continue
        if leaf.is_punctuation and parts:
            parts[-1] += text
        else:
            parts.append(text)
    return " ".join(parts)


class Translator:
    """Runs the translation pipeline for one conlang.

    Safe to share between threads: the profile and engines are immutable and
    the lexicon cache serializes its own mutations.

    Usage:
        translator = Translator(profile, LexiconCache(profile.id, store))
        result = translator.translate(TranslationRequest("I see#v (a dog#n)", "demo"))
    """

    def __init__(
        self,
        profile: ConlangProfile,
        cache: LexiconCache,
        tagger: Tagger | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or Settings()
        self.profile = profile
        self.cache = cache
        self.tagger = tagger or BasicTagger()
        self.parser = AnnotationParser.for_profile(profile)
        self.generator = WordGenerator(profile, settings.max_syllable_retries)
        self.morphology = MorphologyEngine(profile)
        self.transducer = SyntaxTransducer(profile, self.morphology)

    def translate(self, request: TranslationRequest) -> TranslationResult:
        """Translate one request.

        Raises:
            ParseError: Malformed annotation and no fallback allowed
            StructureError: A group without a head
            GenerationExhausted: The profile cannot produce a needed word
            ReservationTimeout: Another request held a key too long
            TranslationCancelled: The request's cancel event was set
        """
        if request.mode not in TRANSLATION_MODES:
            raise ValueError(
                f"Unknown mode '{request.mode}'. Must be one of: {list(TRANSLATION_MODES)}"
            )

        diagnostics: list[Diagnostic] = []
        tokens, mode = self._tokenize(request, diagnostics)
        self._check_cancelled(request)

        root = build_tree(tokens)
        generated = self._translate_leaves(root, request)

        self._check_cancelled(request)
        transduced = self.transducer.transduce(root)
        diagnostics.extend(self._collect_diagnostics(root))

        text = join_output(transduced.leaves)
        logger.debug(f"Translated {len(tokens)} tokens into '{text}'")
        return TranslationResult(
            text=text,
            conlang_id=self.profile.id,
            mode=mode,
            diagnostics=diagnostics,
            tree=root.to_dict() if request.include_tree else None,
            generated=generated,
        )

    def _tokenize(
        self, request: TranslationRequest, diagnostics: list[Diagnostic]
    ) -> tuple[list[AnnotatedToken], str]:
        mode = request.mode
        if mode == "auto":
            mode = (
                "annotated"
                if has_annotations(request.text, self.parser.known_attributes)
                else "basic"
            )
        if mode == "basic":
            return self.tagger.tag(request.text), mode

        try:
            return self.parser.parse(request.text), mode
        except ParseError as e:
            allow = request.allow_fallback
            if allow is None:
                allow = self.profile.policy.allow_basic_fallback
            if not allow:
                raise
            logger.warning(f"Falling back to basic tagging: {e}")
            diagnostics.append(
                Diagnostic(
                    kind="parse_fallback",
                    message=f"Annotation could not be parsed ({e}); used basic tagging",
                    span=e.span,
                )
            )
            # Markers are meaningless to the tagger
            plain = request.text.replace("(", " ").replace(")", " ").replace("#", " ")
            return self.tagger.tag(plain), "basic"

    def _translate_leaves(self, root: PhraseNode, request: TranslationRequest) -> list[str]:
        """Fill base and surface forms on every translatable leaf."""
        translatable: list[LeafNode] = []
        for leaf in root.leaves():
            if leaf.is_punctuation or leaf.part_of_speech is None or leaf.lemma is None:
                leaf.surface = leaf.source_text
            else:
                translatable.append(leaf)

        keys = list(
            dict.fromkeys(
                self.cache.make_key(leaf.lemma, leaf.part_of_speech) for leaf in translatable
            )
        )
        lexemes, new_keys = self._resolve_lexemes(keys, request)

        for leaf in translatable:
            lexeme = lexemes[self.cache.make_key(leaf.lemma, leaf.part_of_speech)]
            leaf.base_form = lexeme.base_form
            leaf.irregular = dict(lexeme.irregular)
            self.morphology.inflect_leaf(leaf)
            logger.debug(
                f"'{leaf.source_text}' -> '{lexeme.base_form}' -> '{leaf.surface}'"
            )
        return [key[0] for key in keys if key in new_keys]

    def _resolve_lexemes(
        self, keys: list[LexiconKey], request: TranslationRequest
    ) -> tuple[dict[LexiconKey, Lexeme], set[LexiconKey]]:
        """Look up every key, generating the missing ones as a unit.

        Missing keys are reserved in sorted order, so two requests never wait
        on each other's reservations. Nothing is committed until every
        word has been generated and the request is still live; on any failure
        all reservations are abandoned.
        """
        lexemes: dict[LexiconKey, Lexeme] = {}
        held: list[LexiconKey] = []
        try:
            for key in sorted(keys, key=lambda k: (k[0], k[1].value)):
                self._check_cancelled(request)
                lexeme, reserved = self.cache.lookup_or_reserve(*key)
                if reserved:
                    held.append(key)
                else:
                    lexemes[key] = lexeme

            words = {}
            for lemma, part_of_speech in held:
                self._check_cancelled(request)
                words[(lemma, part_of_speech)] = self.generator.generate(
                    part_of_speech, seed_for(self.profile.id, lemma, part_of_speech)
                )

            # Last chance to cancel before anything is committed
            self._check_cancelled(request)
            for key in held:
                word = words[key]
                lexemes[key] = self.cache.commit(*key, word.written, word.phonemes)
        except BaseException:
            for key in held:
                self.cache.abandon(*key)
            raise
        return lexemes, set(held)

    def _collect_diagnostics(self, root: PhraseNode) -> list[Diagnostic]:
        diagnostics = []
        report_unmodeled = self.profile.policy.unmodeled_attributes == "report"
        for leaf in root.leaves():
            pos = leaf.part_of_speech.value if leaf.part_of_speech else None
            span = leaf.token.span if leaf.token is not None else None
            if leaf.gap is not None:
                diagnostics.append(
                    Diagnostic(
                        kind="morphology_gap",
                        message=leaf.gap.message,
                        lemma=leaf.lemma,
                        part_of_speech=pos,
                        attributes=sorted(leaf.gap.attributes),
                        span=span,
                    )
                )
            if report_unmodeled and leaf.ignored:
                diagnostics.append(
                    Diagnostic(
                        kind="unmodeled_attribute",
                        message=(
                            f"Attributes {attribute_key(leaf.ignored)} are not "
                            f"modeled for {pos}; ignored"
                        ),
                        lemma=leaf.lemma,
                        part_of_speech=pos,
                        attributes=sorted(leaf.ignored),
                        span=span,
                    )
                )
        return diagnostics

    @staticmethod
    def _check_cancelled(request: TranslationRequest) -> None:
        if request.cancel_event is not None and request.cancel_event.is_set():
            raise TranslationCancelled("Translation cancelled")
