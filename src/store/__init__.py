"""Registry persistence layer.

This package owns file records and the phone-number registry behind a
single contract with local flat-file and DynamoDB backends.
"""
