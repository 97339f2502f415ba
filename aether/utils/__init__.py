"""
UTILITIES PACKAGE
=================

Helpers used by the services (no HTTP, no business logic):

  retry     - with_retry(fn) / RetryPolicy: awaits fn(); retries transient errors with exponential backoff.
  time_info - get_time_information(): current date/time line for the chat prompt.
"""
