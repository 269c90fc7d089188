"""
Content pipeline Django application.

This app crawls manufacturer listing pages, extracts product specs with an
LLM, generates reviews and comparisons, and runs the pipeline job queue
for the affiliate storefront.
"""
