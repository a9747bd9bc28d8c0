"""Remote media binding: store adapter, URL derivation and slot binder."""
