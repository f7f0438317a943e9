"""Recipe Aggregator.

Aggregates recipe search results from a user-submitted store, a public recipe
API and a generative model into one normalized, deduplicated result set while
governing calls to the rate-limited AI provider.
"""

__version__ = "0.1.0"
