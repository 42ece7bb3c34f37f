"""Recommendation module for TagRec.

This module contains the tag index builder, the more-like-this similarity
engine over that index, item neighborhoods, rating prediction and top-N
ranking of a user's unrated items.
"""
