"""
Tests for the Ruby and PHP extractors.
"""

from repolens.ast.models import SymbolKind, Visibility


def by_id(result, symbol_id):
    return next(s for s in result.symbols if s.id == symbol_id)


# =============================================================================
# Ruby
# =============================================================================

RUBY_SOURCE = """\
# frozen_string_literal: true
# Billing helpers.

require "json"
require_relative "lib/tax"

module Billing
  RATE = 5

  # Computes invoices.
  class Invoice < Base
    # Totals the invoice.
    # @param items [Array] line items
    # @return [Integer] the total
    def total(items, currency = "USD", *rest, **opts, &block)
    end

    def self.build
    end

    private

    def secret
    end

    protected def guarded
    end

    def shown
    end
    public :shown
  end
end

def helper
end

def _internal
end
"""


class TestRubyExtractor:
    """Modules, classes, method visibility and requires."""

    def test_module_doc_skips_magic_comment(self, extract):
        result = extract("ruby", RUBY_SOURCE, "billing.rb")
        assert result.module_doc.summary == "Billing helpers."

    def test_requires(self, extract):
        result = extract("ruby", RUBY_SOURCE, "billing.rb")
        assert [i.source for i in result.imports] == ["json", "./lib/tax"]
        assert result.imports[1].specifiers[0].name == "tax"

    def test_containers(self, extract):
        result = extract("ruby", RUBY_SOURCE, "billing.rb")
        billing = by_id(result, "billing.rb:Billing")
        assert billing.kind == SymbolKind.MODULE
        assert billing.exported is True

        invoice = by_id(result, "billing.rb:Billing.Invoice")
        assert invoice.kind == SymbolKind.CLASS
        assert invoice.parent_id == billing.id
        assert invoice.exported is False
        assert invoice.extends == "Base"
        assert invoice.docs.summary == "Computes invoices."

        rate = by_id(result, "billing.rb:Billing.RATE")
        assert rate.kind == SymbolKind.CONSTANT

    def test_method_with_yard_docs(self, extract):
        result = extract("ruby", RUBY_SOURCE, "billing.rb")
        total = by_id(result, "billing.rb:Invoice.total")
        assert total.kind == SymbolKind.METHOD
        assert total.visibility == Visibility.PUBLIC
        assert total.docs.summary == "Totals the invoice."
        assert total.returns.description == "the total"
        assert total.signature == 'def total(items, currency = "USD", *rest, **opts, &block)'

        items, currency, rest, opts, block = total.parameters
        assert items.description == "line items"
        assert currency.optional is True
        assert currency.default_value == '"USD"'
        assert rest.rest is True
        assert opts.rest is True
        assert block.rest is False

    def test_first_member_keeps_its_comment(self, extract):
        source = "class A\n  # Does it.\n  def go\n  end\n\n  # Runs.\n  def run\n  end\nend\n"
        result = extract("ruby", source, "a.rb")
        assert by_id(result, "a.rb:A.go").docs.summary == "Does it."
        assert by_id(result, "a.rb:A.run").docs.summary == "Runs."
        assert by_id(result, "a.rb:A").docs is None

    def test_singleton_method(self, extract):
        result = extract("ruby", RUBY_SOURCE, "billing.rb")
        build = by_id(result, "billing.rb:Invoice.self.build")
        assert build.name == "build"

    def test_visibility_sections(self, extract):
        result = extract("ruby", RUBY_SOURCE, "billing.rb")
        assert by_id(result, "billing.rb:Invoice.secret").visibility == Visibility.PRIVATE
        assert by_id(result, "billing.rb:Invoice.guarded").visibility == Visibility.PROTECTED
        assert by_id(result, "billing.rb:Invoice.shown").visibility == Visibility.PUBLIC

    def test_top_level_functions(self, extract):
        result = extract("ruby", RUBY_SOURCE, "billing.rb")
        helper = by_id(result, "billing.rb:helper")
        assert helper.kind == SymbolKind.FUNCTION
        assert helper.exported is True
        internal = by_id(result, "billing.rb:_internal")
        assert internal.visibility == Visibility.PRIVATE
        assert internal.exported is False
        assert {e.name for e in result.exports} == {"Billing", "helper"}


# =============================================================================
# PHP
# =============================================================================

PHP_SOURCE = r"""<?php
/**
 * Order handling.
 */

namespace App\Orders;

use App\Models\User;
use App\Models\{Post, Comment as Note};

/**
 * Processes orders.
 */
#[Entity]
final class OrderService extends BaseService implements Loggable, Countable
{
    public const LIMIT = 10;
    private ?string $name = null;

    /**
     * Places an order.
     * @param int $id Order id
     * @return bool
     */
    public function place(int $id, string ...$tags): bool
    {
        return true;
    }

    protected function audit() {}

    function legacy() {}
}

interface Loggable
{
    public function log(string $message): void;
}

function helper($value = 1) {}
"""


class TestPhpExtractor:
    """Namespaces, use statements, classes and PHPDoc."""

    def test_file_doc(self, extract):
        result = extract("php", PHP_SOURCE, "src/OrderService.php")
        assert result.module_doc.summary == "Order handling."

    def test_use_statements(self, extract):
        result = extract("php", PHP_SOURCE, "src/OrderService.php")
        single, group = result.imports
        assert single.source == "App\\Models\\User"
        assert single.specifiers[0].name == "User"
        assert group.source == "App\\Models"
        assert [(s.name, s.alias) for s in group.specifiers] == [("Post", None), ("Comment", "Note")]

    def test_class(self, extract):
        result = extract("php", PHP_SOURCE, "src/OrderService.php")
        service = by_id(result, "src/OrderService.php:OrderService")
        assert service.kind == SymbolKind.CLASS
        assert service.exported is True
        assert service.docs.summary == "Processes orders."
        assert service.decorators == ["Entity"]
        assert service.extends == "BaseService"
        assert service.implements == ["Loggable", "Countable"]

    def test_members(self, extract):
        result = extract("php", PHP_SOURCE, "src/OrderService.php")
        limit = by_id(result, "src/OrderService.php:OrderService.LIMIT")
        assert limit.kind == SymbolKind.CONSTANT
        assert limit.visibility == Visibility.PUBLIC
        name = by_id(result, "src/OrderService.php:OrderService.name")
        assert name.kind == SymbolKind.PROPERTY
        assert name.visibility == Visibility.PRIVATE

    def test_method(self, extract):
        result = extract("php", PHP_SOURCE, "src/OrderService.php")
        place = by_id(result, "src/OrderService.php:OrderService.place")
        assert place.kind == SymbolKind.METHOD
        assert place.docs.summary == "Places an order."
        assert place.returns.type == "bool"
        id_param, tags = place.parameters
        assert (id_param.name, id_param.type, id_param.description) == ("id", "int", "Order id")
        assert tags.name == "tags"
        assert tags.rest is True

    def test_member_visibility(self, extract):
        result = extract("php", PHP_SOURCE, "src/OrderService.php")
        assert by_id(result, "src/OrderService.php:OrderService.audit").visibility == Visibility.PROTECTED
        assert by_id(result, "src/OrderService.php:OrderService.legacy").visibility == Visibility.PUBLIC

    def test_functions_and_exports(self, extract):
        result = extract("php", PHP_SOURCE, "src/OrderService.php")
        helper = by_id(result, "src/OrderService.php:helper")
        assert helper.kind == SymbolKind.FUNCTION
        assert helper.parameters[0].default_value == "1"
        assert helper.parameters[0].optional is True
        assert by_id(result, "src/OrderService.php:Loggable").kind == SymbolKind.INTERFACE
        assert [e.name for e in result.exports] == ["OrderService", "Loggable", "helper"]
