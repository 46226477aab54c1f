"""Agende: appointment booking for salons and clinics."""
