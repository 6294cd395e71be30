"""Test suite for formrequest.

Covers the validator and its rules, the form request base class, the
authorization gate, routing, and the three testing helpers:
FormRequestTester, ValidationOutcome, and RouteBindingChecker.
"""
