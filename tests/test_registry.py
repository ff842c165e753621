"""
Tests for the block registry.

Covers slug validation, duplicate and unknown-block handling, lookups,
listing order and visibility filtering.
"""

import threading
import unittest

from blockreg.models import BlockDefinition, BlockSettings, DerivedByFunction, DerivedByRuleMap
from blockreg import registry as registry_module
from blockreg.registry import BlockRegistry, RegistryErrorReason, RegistryResult


class TestRegisterBlock(unittest.TestCase):
    """Test registering blocks."""

    def setUp(self):
        """Set up a fresh registry for each test."""
        self.registry = BlockRegistry()

    def test_register_valid_slug(self):
        """Test a well-formed slug is stored and returned."""
        result = self.registry.register("my-plugin/my-block", {"is_visible": True})

        self.assertTrue(result)
        self.assertTrue(result.ok)
        self.assertIsNone(result.reason)
        self.assertEqual(result.block.slug, "my-plugin/my-block")
        self.assertIs(self.registry.get("my-plugin/my-block"), result.block)

    def test_registered_definition_equals_settings_with_slug(self):
        """Test the stored definition is the settings merged with the slug."""
        settings = {"is_visible": False, "extensions": {"title": "Quote"}}
        self.registry.register("core/quote", settings)

        expected = BlockDefinition(slug="core/quote", **settings)
        self.assertEqual(self.registry.get("core/quote"), expected)

    def test_register_without_settings(self):
        """Test settings are optional."""
        result = self.registry.register("core/text")

        self.assertTrue(result)
        self.assertIsNone(result.block.attributes)
        self.assertTrue(result.block.is_visible)
        self.assertEqual(result.block.extensions, {})

    def test_register_with_settings_model(self):
        """Test a BlockSettings instance is accepted as-is."""
        settings = BlockSettings(is_visible=False)
        result = self.registry.register("core/more", settings)

        self.assertTrue(result)
        self.assertFalse(result.block.is_visible)

    def test_register_copies_settings(self):
        """Test later changes to the caller's settings do not leak into the registry."""
        settings = {"extensions": {"title": "Before"}}
        self.registry.register("core/heading", settings)

        settings["extensions"]["title"] = "After"
        settings["is_visible"] = False

        block = self.registry.get("core/heading")
        self.assertEqual(block.extensions, {"title": "Before"})
        self.assertTrue(block.is_visible)

    def test_unknown_settings_become_extensions(self):
        """Test unrecognized settings are carried in the extensions map."""
        result = self.registry.register("core/button", {"title": "Button", "category": "layout"})

        self.assertEqual(result.block.extensions, {"title": "Button", "category": "layout"})

    def test_non_string_slug_refused(self):
        """Test slugs must be strings."""
        with self.assertLogs(level="ERROR") as logs:
            result = self.registry.register(42, {})

        self.assertFalse(result)
        self.assertIsNone(result.block)
        self.assertEqual(result.reason, RegistryErrorReason.INVALID_KEY_FORMAT)
        self.assertIn("Block slugs must be strings.", logs.output[0])
        self.assertEqual(self.registry.list_all(), [])

    def test_slug_without_namespace_refused(self):
        """Test slugs must contain a namespace prefix."""
        with self.assertLogs(level="ERROR") as logs:
            result = self.registry.register("bad", {})

        self.assertFalse(result)
        self.assertEqual(result.reason, RegistryErrorReason.INVALID_KEY_FORMAT)
        self.assertIn("namespace prefix", logs.output[0])
        self.assertNotIn("bad", self.registry)
        self.assertEqual(self.registry.list_all(), [])

    def test_malformed_slugs_refused(self):
        """Test uppercase letters, extra segments and empty parts are refused."""
        for slug in ["Core/text", "core/text/extra", "/text", "core/", "core text/a", "core/te_xt", ""]:
            with self.subTest(slug=slug):
                with self.assertLogs(level="ERROR"):
                    result = self.registry.register(slug)
                self.assertEqual(result.reason, RegistryErrorReason.INVALID_KEY_FORMAT)

        self.assertEqual(len(self.registry), 0)

    def test_duplicate_slug_refused(self):
        """Test a second registration keeps the first definition."""
        first = self.registry.register("core/text", {"is_visible": True})

        with self.assertLogs(level="ERROR") as logs:
            second = self.registry.register("core/text", {"is_visible": False})

        self.assertFalse(second)
        self.assertEqual(second.reason, RegistryErrorReason.DUPLICATE_KEY)
        self.assertIn('Block "core/text" is already registered.', logs.output[0])
        self.assertIs(self.registry.get("core/text"), first.block)
        self.assertTrue(self.registry.get("core/text").is_visible)

    def test_visibility_spellings(self):
        """Test both is_visible and isVisible hide a block."""
        self.registry.register("core/snake", {"is_visible": False})
        self.registry.register("core/camel", {"isVisible": False})
        self.registry.register("core/shown", {"isVisible": True})

        self.assertFalse(self.registry.get("core/camel").is_visible)
        self.assertEqual(self.registry.get("core/camel").extensions, {})
        self.assertEqual([block.slug for block in self.registry.list_visible()], ["core/shown"])

    def test_null_visibility_means_visible(self):
        """Test an explicit null visibility keeps the block visible."""
        result = self.registry.register("core/text", {"is_visible": None})

        self.assertTrue(result)
        self.assertTrue(result.block.is_visible)
        self.assertEqual(self.registry.list_visible(), [result.block])

    def test_non_boolean_visibility_refused(self):
        """Test visibility values are not coerced from other types."""
        for value in [0, 1, "false"]:
            with self.subTest(value=value):
                with self.assertLogs(level="ERROR"):
                    result = self.registry.register("core/text", {"is_visible": value})
                self.assertEqual(result.reason, RegistryErrorReason.INVALID_SETTINGS)

        self.assertEqual(len(self.registry), 0)

    def test_non_mapping_extensions_refused(self):
        """Test malformed extensions are reported, not raised."""
        with self.assertLogs(level="ERROR"):
            result = self.registry.register("core/text", {"extensions": 5, "title": "T"})

        self.assertFalse(result)
        self.assertEqual(result.reason, RegistryErrorReason.INVALID_SETTINGS)
        self.assertNotIn("core/text", self.registry)

    def test_invalid_settings_refused(self):
        """Test settings that fail validation are reported, not raised."""
        with self.assertLogs(level="ERROR") as logs:
            result = self.registry.register("core/text", {"attributes": 5})

        self.assertFalse(result)
        self.assertEqual(result.reason, RegistryErrorReason.INVALID_SETTINGS)
        self.assertIn('Block "core/text" has invalid settings', logs.output[0])
        self.assertIsNone(self.registry.get("core/text"))

    def test_failed_registration_does_not_stop_others(self):
        """Test a batch of registrations continues past a bad one."""
        with self.assertLogs(level="ERROR"):
            results = [
                self.registry.register("core/one"),
                self.registry.register("two"),
                self.registry.register("core/three"),
            ]

        self.assertEqual([bool(result) for result in results], [True, False, True])
        self.assertEqual([block.slug for block in self.registry.list_all()], ["core/one", "core/three"])


class TestAttributeSourceSelection(unittest.TestCase):
    """Test how the attributes setting is turned into a tagged variant."""

    def setUp(self):
        """Set up a fresh registry for each test."""
        self.registry = BlockRegistry()

    def test_function_attributes(self):
        """Test a callable becomes DerivedByFunction."""
        derive = lambda raw: {"length": len(raw)}
        block = self.registry.register("core/text", {"attributes": derive}).block

        self.assertIsInstance(block.attributes, DerivedByFunction)
        self.assertEqual(block.attributes.kind, "function")
        self.assertIs(block.attributes.fn, derive)

    def test_rule_map_attributes(self):
        """Test a mapping becomes DerivedByRuleMap with its rules kept as given."""
        block = self.registry.register("core/quote", {
            "attributes": {"value": {"source": "text", "selector": "blockquote"}}
        }).block

        self.assertIsInstance(block.attributes, DerivedByRuleMap)
        self.assertEqual(block.attributes.kind, "rules")
        self.assertEqual(block.attributes.rules, {"value": {"source": "text", "selector": "blockquote"}})

    def test_rule_map_in_another_engine_format(self):
        """Test rules meant for a caller-supplied engine are accepted as-is."""
        select_heading = lambda element: element
        block = self.registry.register("core/heading", {
            "attributes": {"level": "h-level", "content": select_heading}
        }).block

        self.assertIsInstance(block.attributes, DerivedByRuleMap)
        self.assertEqual(block.attributes.rules["level"], "h-level")
        self.assertIs(block.attributes.rules["content"], select_heading)

    def test_empty_rule_map_is_present(self):
        """Test an empty mapping still declares a rule map."""
        block = self.registry.register("core/empty", {"attributes": {}}).block

        self.assertIsInstance(block.attributes, DerivedByRuleMap)
        self.assertEqual(block.attributes.rules, {})


class TestUnregisterBlock(unittest.TestCase):
    """Test unregistering blocks."""

    def setUp(self):
        """Set up a fresh registry for each test."""
        self.registry = BlockRegistry()

    def test_unregister_registered_block(self):
        """Test unregistering returns the removed definition."""
        registered = self.registry.register("core/text").block

        result = self.registry.unregister("core/text")

        self.assertTrue(result)
        self.assertIs(result.block, registered)
        self.assertIsNone(self.registry.get("core/text"))
        self.assertEqual(self.registry.list_all(), [])

    def test_unregister_unknown_block(self):
        """Test unregistering an unknown block is reported, not raised."""
        with self.assertLogs(level="ERROR") as logs:
            result = self.registry.unregister("core/missing")

        self.assertFalse(result)
        self.assertIsNone(result.block)
        self.assertEqual(result.reason, RegistryErrorReason.UNKNOWN_KEY)
        self.assertIn('Block "core/missing" is not registered.', logs.output[0])

    def test_unregister_twice(self):
        """Test the second unregister fails."""
        self.registry.register("core/text")
        self.assertTrue(self.registry.unregister("core/text"))

        with self.assertLogs(level="ERROR"):
            self.assertFalse(self.registry.unregister("core/text"))

    def test_reregister_after_unregister(self):
        """Test a block can be re-registered with new settings."""
        self.registry.register("core/text", {"is_visible": True})
        self.registry.unregister("core/text")

        result = self.registry.register("core/text", {"is_visible": False})

        self.assertTrue(result)
        self.assertFalse(self.registry.get("core/text").is_visible)


class TestLookupAndListing(unittest.TestCase):
    """Test lookups and listings."""

    def setUp(self):
        """Set up a fresh registry for each test."""
        self.registry = BlockRegistry()

    def test_lookup_miss_is_silent(self):
        """Test a missing block returns None without logging."""
        with self.assertNoLogs(level="DEBUG"):
            self.assertIsNone(self.registry.get("core/missing"))
            self.assertIsNone(self.registry.get(42))

    def test_list_all_in_registration_order(self):
        """Test listing keeps registration order of present blocks."""
        for slug in ["core/a", "core/b", "core/c"]:
            self.registry.register(slug)

        self.registry.unregister("core/a")
        self.registry.register("core/a")

        self.assertEqual(
            [block.slug for block in self.registry.list_all()],
            ["core/b", "core/c", "core/a"]
        )

    def test_list_visible(self):
        """Test only explicitly invisible blocks are excluded."""
        self.registry.register("core/default")
        self.registry.register("core/shown", {"is_visible": True})
        self.registry.register("core/hidden", {"is_visible": False})

        self.assertEqual(
            [block.slug for block in self.registry.list_visible()],
            ["core/default", "core/shown"]
        )

    def test_list_returns_copy(self):
        """Test mutating a listing does not affect the registry."""
        self.registry.register("core/text")

        blocks = self.registry.list_all()
        blocks.clear()

        self.assertEqual(len(self.registry.list_all()), 1)

    def test_contains_and_len(self):
        """Test membership and size helpers."""
        self.registry.register("core/text")

        self.assertIn("core/text", self.registry)
        self.assertNotIn("core/quote", self.registry)
        self.assertEqual(len(self.registry), 1)

    def test_clear(self):
        """Test clearing the registry."""
        self.registry.register("core/text")
        self.registry.clear()

        self.assertEqual(len(self.registry), 0)

    def test_concurrent_registration(self):
        """Test concurrent registrations of the same slug store exactly one block."""
        results = []

        def worker():
            results.append(self.registry.register("core/race"))

        with self.assertLogs(level="ERROR"):
            threads = [threading.Thread(target=worker) for _ in range(8)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        self.assertEqual(sum(1 for result in results if result), 1)
        self.assertEqual(len(self.registry), 1)


class TestGlobalRegistry(unittest.TestCase):
    """Test the module-level shortcuts on the global registry."""

    def tearDown(self):
        """Remove anything the test registered globally."""
        for slug in ["test-suite/global", "test-suite/hidden"]:
            if slug in registry_module.block_registry:
                registry_module.block_registry.unregister(slug)

    def test_shortcuts(self):
        self.assertTrue(registry_module.register_block("test-suite/global"))
        self.assertTrue(registry_module.register_block("test-suite/hidden", {"is_visible": False}))

        self.assertEqual(registry_module.get_block_settings("test-suite/global").slug, "test-suite/global")
        self.assertIn("test-suite/hidden", [block.slug for block in registry_module.get_blocks()])
        self.assertNotIn("test-suite/hidden", [block.slug for block in registry_module.get_visible_blocks()])

        self.assertTrue(registry_module.unregister_block("test-suite/global"))
        self.assertIsNone(registry_module.get_block_settings("test-suite/global"))


class TestRegistryResult(unittest.TestCase):
    """Test the RegistryResult value object."""

    def test_success_is_truthy(self):
        block = BlockDefinition(slug="core/text")
        result = RegistryResult(block=block)

        self.assertTrue(result)
        self.assertTrue(result.ok)

    def test_failure_is_falsy(self):
        result = RegistryResult(reason=RegistryErrorReason.UNKNOWN_KEY, message="nope")

        self.assertFalse(result)
        self.assertFalse(result.ok)
        self.assertEqual(result.reason.value, "unknown_key")


if __name__ == '__main__':
    unittest.main()
