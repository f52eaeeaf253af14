"""
Piecework Demo: Tiny Sentence Assembly
======================================
Builds a toy lexicon of word pieces and enumerates the connected
assemblies it licenses, first exhaustively and then by weighted sampling.
"""

from piecework import (
    Aggregate,
    Connector,
    Dictionary,
    Section,
    SimplePolicy,
    WeightedPolicy,
)

# Configuration
MAX_NETWORK_SIZE = 4
MAX_SAMPLING_STEPS = 300
SEED = 42


def build_lexicon() -> Dictionary:
    """Subjects link to verbs with S, verbs to objects with O, adjectives to nouns with A."""
    s_plus, s_minus = Connector(label="S", direction="+"), Connector(label="S", direction="-")
    o_plus, o_minus = Connector(label="O", direction="+"), Connector(label="O", direction="-")
    a_plus, a_minus = Connector(label="A", direction="+"), Connector(label="A", direction="-")

    d = Dictionary()
    d.add_sections([
        Section(point="cats", connectors=(s_plus,)),
        Section(point="cats", connectors=(a_minus, s_plus)),
        Section(point="chase", connectors=(s_minus, o_plus)),
        Section(point="sleep", connectors=(s_minus,)),
        Section(point="mice", connectors=(o_minus,)),
        Section(point="mice", connectors=(a_minus, o_minus)),
        Section(point="small", connectors=(a_plus,)),
    ])

    for section in d.sections:
        d.set_value(section, "freq", 1.0)
    d.set_value(Section(point="sleep", connectors=(s_minus,)), "freq", 4.0)
    return d


def describe(solution) -> str:
    words = " ".join(solution.templates())
    return f"{solution.size} links: {words}"


def main():
    lexicon = build_lexicon()
    print(f"Lexicon: {lexicon}")

    print("\nExhaustive enumeration")
    policy = SimplePolicy(lexicon, max_network_size=MAX_NETWORK_SIZE)
    for solution in Aggregate(policy).generate(["cats"]):
        print(f"  {describe(solution)}")

    print("\nWeighted sampling")
    sampler = WeightedPolicy(
        lexicon,
        seed=SEED,
        weight_key="freq",
        max_steps=MAX_SAMPLING_STEPS,
        max_network_size=MAX_NETWORK_SIZE,
    )
    for solution in Aggregate(sampler).generate(["cats"])[:10]:
        print(f"  {describe(solution)}")


if __name__ == "__main__":
    main()
