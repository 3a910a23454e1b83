"""
Known-good object IDs shown when the live object listing cannot be loaded.

Every entry is a public-domain highlight with a primary image, so the gallery
is never empty when the listing endpoint is down.
"""

FALLBACK_OBJECT_IDS = (
    436535,  # Wheat Field with Cypresses, Vincent van Gogh
    436105,  # The Death of Socrates, Jacques Louis David
    437329,  # Self-Portrait with a Straw Hat, Vincent van Gogh
    438817,  # Bridge over a Pond of Water Lilies, Claude Monet
    436121,  # The Harvesters, Pieter Bruegel the Elder
    459055,  # Cypresses, Vincent van Gogh
    45734,   # Under the Wave off Kanagawa, Katsushika Hokusai
    11417,   # Washington Crossing the Delaware, Emanuel Leutze
    10481,   # The Veteran in a New Field, Winslow Homer
    436528,  # Garden at Sainte-Adresse, Claude Monet
    437984,  # Young Woman with a Water Pitcher, Johannes Vermeer
    435809,  # Portrait of a Young Woman, Rembrandt
)
