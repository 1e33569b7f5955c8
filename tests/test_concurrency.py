"""Tests for concurrent use of the type registry."""

import threading
from concurrent.futures import ThreadPoolExecutor

from typed_models.types import TypeRegistry


class Post:
    pass


class TestConcurrentResolve:
    """Tests for get-or-create under contention."""

    def test_single_instance_per_descriptor(self):
        """Test that racing resolves cache exactly one Type."""
        registry = TypeRegistry()
        barrier = threading.Barrier(8)

        def resolve(_):
            barrier.wait()
            return registry.resolve({str: [Post]})

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(resolve, range(8)))

        assert all(t is results[0] for t in results)
        assert len(registry) == 1

    def test_concurrent_registration(self):
        """Test registering many models from several threads."""
        registry = TypeRegistry()
        models = [type(f"Model{i}", (), {}) for i in range(50)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(registry.register_model, models))

        for model in models:
            assert registry.get_model(model.__name__) is model
