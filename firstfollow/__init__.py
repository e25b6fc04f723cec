"""Compute FIRST and FOLLOW sets for context-free grammars.

The analysis lives in the [grammar] module. The [codec] module reads and
writes grammars as text, and [report] is the command line program that prints
every set for a grammar file.
"""
from . import codec
from . import grammar
from . import report

from .codec import GrammarSyntaxError, dump, load, read_grammar, format_grammar
from .grammar import EPSILON, FirstInfo, FollowInfo, Grammar, Rule
