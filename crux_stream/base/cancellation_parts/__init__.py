"""Cancellation parts package (implementations behind ``base.cancellation``)."""
