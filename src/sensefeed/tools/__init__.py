"""Development tools: debug instrumentation and the synthetic feed benchmark."""
