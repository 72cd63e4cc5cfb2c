"""Embedding vector types, metrics, codecs and ranking."""
