"""Command line interface for pacdb"""
