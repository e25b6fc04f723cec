"""FIRST and FOLLOW sets for context-free grammars.

A grammar here is about as plain as it gets: a set of non-terminal names, a set
of terminal names, a set of rules (a head and a body, where the body is a
sequence of symbol names), and a start symbol. Symbols are just strings, and
they can contain whitespace if you really want them to.

    grammar = Grammar(
        non_terminals={"E", "T"},
        terminals={"+", "id"},
        rules={
            Rule("E", ("T", "+", "E")),
            Rule("E", ("T",)),
            Rule("T", ("id",)),
        },
        start="E",
    )

    grammar.first(["E"])  # {"id"}
    grammar.follow("T")   # {"+", ""}

The empty string is reserved: it is EPSILON, the empty derivation. It shows up
in FIRST sets when a sequence can match nothing at all, and in FOLLOW sets as
the end-of-input marker for the start symbol. (There is no separate '$' here;
the start symbol is followed by "nothing", and nothing is spelled "".)

## Why fixed points?

The obvious way to write FIRST and FOLLOW is as a pair of mutually recursive
functions straight out of the textbook. That works right up until somebody
hands you a grammar where A starts with B and B starts with A, and then it
recurses forever. Guarding the recursion with a visited set fixes the
termination but gives the wrong answer for whichever symbol you happened to
visit second.

So instead we do what every parser generator eventually does: compute the sets
for *every* symbol at once, by sweeping over the rules and merging sets until a
full pass changes nothing. Sets only ever grow and there are finitely many
symbols, so this always terminates, and cycles just mean a few extra passes.
The tables are computed once per grammar and cached; since a Grammar is frozen
they can never go stale.
"""

import dataclasses
import functools
import logging
import typing


EPSILON = ""

first_log = logging.getLogger("firstfollow.first")
follow_log = logging.getLogger("firstfollow.follow")


class Rule(typing.NamedTuple):
    """A single production: `head` can be replaced by the symbols in `body`.

    An empty body is an epsilon production.
    """

    head: str
    body: typing.Tuple[str, ...]

    def __repr__(self) -> str:
        return f"{self.head} -> {' '.join(repr(s) for s in self.body) or 'ε'}"


def update_changed(items: set[str], other: set[str]) -> bool:
    """Merge the `other` set into the `items` set, and return True if this
    changed the items set.
    """
    old_len = len(items)
    items.update(other)
    return old_len != len(items)


@dataclasses.dataclass(frozen=True)
class FirstInfo:
    """A structure that tracks the first set of a grammar. (Or, as it is
    commonly styled in textbooks, FIRST.)

    firsts[s] is the set of terminals that can start anything derived from s,
    *without* epsilon. For a terminal t, firsts[t] == {t}.

    is_epsilon[s] is True if s can match zero symbols. EPSILON itself is
    always in here, with an empty first set: it matches nothing, successfully.

    For example, consider the following grammar:

        x = y A
        y = z
        y = B x
        y =
        z = C
        z = D x

    FIRST[z] is {C, D}. FIRST[y] is {B, C, D}: z comes first in the first
    production, B in the second, and the third contributes nothing but makes
    is_epsilon[y] True. Then FIRST[x] is {A, B, C, D}, where the A shows up
    because y can be empty and so A can come first in x.

    A symbol that shows up in a body but has no rules and is not a terminal has
    an empty first set and is not epsilon. That is a broken grammar, but we
    don't check grammars, we just don't fall over on them.
    """

    firsts: dict[str, set[str]]
    is_epsilon: dict[str, bool]

    @classmethod
    def from_grammar(
        cls,
        productions: dict[str, list[typing.Tuple[str, ...]]],
        terminals: typing.Iterable[str],
    ) -> "FirstInfo":
        """Construct a new FirstInfo from a map of head -> bodies and the set
        of terminals.
        """
        terminals = frozenset(terminals)

        firsts: dict[str, set[str]] = {EPSILON: set()}
        epsilons: dict[str, bool] = {EPSILON: True}
        for terminal in terminals:
            firsts[terminal] = {terminal}
            epsilons[terminal] = False
        for name, bodies in productions.items():
            for symbol in [name, *(s for body in bodies for s in body)]:
                if symbol not in firsts:
                    firsts[symbol] = set()
                    epsilons[symbol] = False

        # A head that appears in its own body is skipped over while scanning
        # that body, as though it matched nothing. So `e = e + t` puts '+' in
        # FIRST[e], and a body made of nothing but the head (and other
        # things that can be empty) makes the head empty too.
        changed = True
        passes = 0
        while changed:
            changed = False
            passes += 1
            for name, bodies in productions.items():
                if name in terminals:
                    # Terminals are always their own first set, whatever
                    # somebody wrote on the left of an `=`.
                    continue

                f = firsts[name]
                for body in bodies:
                    for symbol in body:
                        if symbol == name:
                            continue

                        changed = update_changed(f, firsts[symbol]) or changed
                        if not epsilons[symbol]:
                            # Nothing after this symbol can come first.
                            break
                    else:
                        # Every symbol in the body (possibly none of them)
                        # can be empty, so I can be empty too.
                        if not epsilons[name]:
                            epsilons[name] = True
                            changed = True

            if first_log.isEnabledFor(logging.INFO):
                first_log.info("pass %d: changed=%s", passes, changed)

        return FirstInfo(firsts=firsts, is_epsilon=epsilons)

    def gen_first(self, symbols: typing.Iterable[str]) -> typing.Tuple[set[str], bool]:
        """Return the first set for a *sequence* of symbols, along with whether
        or not the whole sequence can be empty.

        Build the set by combining the first sets of the symbols from left to
        right as long as epsilon remains in the first set. If we reach the end
        and every symbol has had epsilon, then this set also has epsilon.
        Otherwise we can stop as soon as we get to a non-epsilon first(), and
        our result does not have epsilon.

        (The returned flag is True for an empty sequence; deciding what that
        means is the caller's problem.)
        """
        result: set[str] = set()
        for s in symbols:
            result.update(self.firsts.get(s, ()))
            if not self.is_epsilon.get(s, False):
                return (result, False)

        return (result, True)


@dataclasses.dataclass(frozen=True)
class FollowInfo:
    """A structure that tracks the follow set of a grammar. (Or, again, as the
    textbooks would have it, FOLLOW.)

    The follow set for a symbol is the set of terminals that can come right
    after it in some sentence derived from the start symbol. The start symbol
    is followed by EPSILON, which marks the end of the input, and that marker
    flows on into the follow sets of anything that can come last.

    In order to compute follow, we need to find every place that a given symbol
    appears in the grammar, and look at the first set of what comes after it.
    If everything after it can be empty (or there is nothing after it) then
    anything that can follow the head of the rule can follow it too.

    Consider this nonsense grammar:

        s = x A
        x = y B
        x = y z
        y = x C
        z = D
        z =

    FOLLOW[y] is {A, B, D}. B comes from the first production of x, that's
    easy. D comes from the second production of x: FIRST[z] is {D}. And A is
    the surprising one: z can be empty, so y can come last in x, and so
    anything that follows x (like A, from s) can follow y.

    Every occurrence of a symbol counts, not just the first one in a body. But
    a rule never contributes to the follow set of its own head: in
    `p = ( p )`, the inner p says nothing about FOLLOW[p]. (It still counts
    for everything else in the body; ')' is followed by whatever follows p.)
    """

    follows: dict[str, set[str]]

    @classmethod
    def from_grammar(
        cls,
        productions: dict[str, list[typing.Tuple[str, ...]]],
        symbols: typing.Iterable[str],
        start_symbol: str,
        firsts: FirstInfo,
    ) -> "FollowInfo":
        follows: dict[str, set[str]] = {symbol: set() for symbol in symbols}
        for name, bodies in productions.items():
            follows.setdefault(name, set())
            for body in bodies:
                for symbol in body:
                    if symbol != EPSILON:
                        follows.setdefault(symbol, set())
        follows.setdefault(start_symbol, set()).add(EPSILON)

        changed = True
        passes = 0
        while changed:
            changed = False
            passes += 1
            for name, bodies in productions.items():
                for body in bodies:
                    # Walk backwards through the rule, carrying the first set
                    # of everything to the right of the current symbol. While
                    # everything to the right can still be empty, the follow
                    # of the head flows into the current symbol. The head's
                    # own occurrences are only walked past.
                    epsilon = True
                    trailing: set[str] = set()
                    for symbol in reversed(body):
                        if symbol != EPSILON and symbol != name:
                            f = follows[symbol]
                            if epsilon:
                                changed = update_changed(f, follows[name]) or changed
                            changed = update_changed(f, trailing) or changed

                        symbol_firsts = firsts.firsts[symbol]
                        if firsts.is_epsilon[symbol]:
                            trailing = trailing | symbol_firsts
                        else:
                            trailing = set(symbol_firsts)
                            epsilon = False

            if follow_log.isEnabledFor(logging.INFO):
                follow_log.info("pass %d: changed=%s", passes, changed)

        return FollowInfo(follows=follows)


@dataclasses.dataclass(frozen=True)
class Grammar:
    """A context-free grammar: the symbols, the rules, and where to start.

    Any iterables will do when constructing one; they get frozen on the way in
    so that the cached FIRST and FOLLOW tables stay correct. Rules can be given
    as Rule objects or plain (head, body) pairs, and duplicates collapse.

    Nothing here checks that the grammar makes sense (that heads are declared
    non-terminals, that bodies only use declared symbols, and so on.) Broken
    grammars get answers; they just might not mean much.
    """

    non_terminals: frozenset[str]
    terminals: frozenset[str]
    rules: frozenset[Rule]
    start: str

    def __post_init__(self):
        object.__setattr__(self, "non_terminals", frozenset(self.non_terminals))
        object.__setattr__(self, "terminals", frozenset(self.terminals))
        object.__setattr__(
            self,
            "rules",
            frozenset(Rule(head, tuple(body)) for head, body in self.rules),
        )

    def has_terminal(self, symbol: str) -> bool:
        return symbol in self.terminals

    def has_non_terminal(self, symbol: str) -> bool:
        return symbol in self.non_terminals

    def symbols(self) -> list[str]:
        """All the declared symbols, non-terminals and terminals together, in
        sorted order.
        """
        return sorted(self.non_terminals | self.terminals)

    def rules_for(self, head: str) -> list[Rule]:
        return [Rule(head, body) for body in self._productions.get(head, [])]

    @functools.cached_property
    def _productions(self) -> dict[str, list[typing.Tuple[str, ...]]]:
        productions: dict[str, list[typing.Tuple[str, ...]]] = {}
        for head, body in sorted(self.rules):
            productions.setdefault(head, []).append(body)
        return productions

    @functools.cached_property
    def _firsts(self) -> FirstInfo:
        return FirstInfo.from_grammar(self._productions, self.terminals)

    @functools.cached_property
    def _follows(self) -> FollowInfo:
        return FollowInfo.from_grammar(
            self._productions,
            self.symbols(),
            self.start,
            self._firsts,
        )

    def nullable(self, symbol: str) -> bool:
        """True if the symbol can derive the empty string."""
        return self._firsts.is_epsilon.get(symbol, False)

    def first(self, sequence: typing.Iterable[str]) -> set[str]:
        """Return the set of terminals that can begin some string derived from
        `sequence`, plus EPSILON if the whole sequence can derive the empty
        string.

        The empty sequence is a special case: its first set is empty, and does
        *not* contain EPSILON. (Ask for `first([EPSILON])` if that's what you
        want.)
        """
        sequence = tuple(sequence)
        if len(sequence) == 0:
            return set()

        result, epsilon = self._firsts.gen_first(sequence)
        if epsilon:
            result.add(EPSILON)
        return result

    def follow(self, symbol: str) -> set[str]:
        """Return the set of terminals that can immediately follow `symbol` in
        some derivation from the start symbol. EPSILON in the result means the
        symbol can come at the very end of the input; it is always there for
        the start symbol.

        Symbols that are not declared in the grammar have an empty follow set.
        """
        if not (self.has_non_terminal(symbol) or self.has_terminal(symbol)):
            return set()
        return set(self._follows.follows.get(symbol, ()))
