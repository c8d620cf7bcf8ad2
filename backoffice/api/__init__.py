"""HTTP layer: dependencies, response envelopes and versioned routers."""
