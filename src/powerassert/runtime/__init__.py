"""Evaluation runtime: Java values, arithmetic, host bridge and the model-building interpreter."""
