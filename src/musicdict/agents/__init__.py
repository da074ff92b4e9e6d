"""Pipeline agents: validator, reference resolver, generator, enhancer."""
