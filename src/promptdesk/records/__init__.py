"""
Dataset record helpers: form-to-variables building and schema inference.
"""
