"""Hiperfarma Business Meeting manager: stores, positivations, award tiers and tiered sweepstakes."""
