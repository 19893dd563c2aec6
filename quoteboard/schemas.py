"""Schemas for API requests and responses."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class HealthStatusSchema(Schema):
    status = fields.String(required=True)
    app = fields.String()


class HealthQuotesSchema(Schema):
    status = fields.String(required=True)
    reference_currency = fields.String(required=True)
    cached_count = fields.Integer(required=True)
    tracked_count = fields.Integer(required=True)
    last_cached_at = fields.DateTime(allow_none=True)
    can_refresh = fields.Boolean(required=True)
    remaining_seconds = fields.Integer(required=True)


class CurrencyValidationRequestSchema(Schema):
    code = fields.String(load_default=None)


class CurrencyValidationResponseSchema(Schema):
    code = fields.String(required=True)
    message = fields.String(required=True)


class CurrencyListSchema(Schema):
    reference_currency = fields.String(required=True)
    codes = fields.List(fields.String(), required=True)
    tracked = fields.List(fields.String(), required=True)


class QuoteSchema(Schema):
    currency = fields.String(required=True)
    bid = fields.Float(required=True)
    ask = fields.Float(required=True)
    pct_change = fields.Float(required=True)
    provider_timestamp = fields.String(required=True)
    cached_at = fields.DateTime(required=True)


class QuoteQueryArgsSchema(Schema):
    refresh = fields.Boolean(load_default=False)


class QuoteBoardSchema(Schema):
    reference_currency = fields.String(required=True)
    decision = fields.String(required=True)
    can_refresh = fields.Boolean(required=True)
    remaining_seconds = fields.Integer(required=True)
    refreshed = fields.Boolean(required=True)
    last_cached_at = fields.DateTime(allow_none=True)
    quotes = fields.List(fields.Nested(QuoteSchema), required=True)
    rates = fields.Dict(keys=fields.String(), values=fields.Float(), required=True)


class RateTableSchema(Schema):
    reference_currency = fields.String(required=True)
    last_cached_at = fields.DateTime(allow_none=True)
    rates = fields.Dict(keys=fields.String(), values=fields.Float(), required=True)


class ConversionRequestSchema(Schema):
    amount = fields.Decimal(required=True, as_string=True)
    source = fields.String(required=True, data_key="from", validate=validate.Length(min=1))
    target = fields.String(required=True, data_key="to", validate=validate.Length(min=1))


class ConversionResponseSchema(Schema):
    amount = fields.Decimal(required=True, as_string=True)
    source = fields.String(required=True, data_key="from")
    target = fields.String(required=True, data_key="to")
    rate = fields.Decimal(required=True, as_string=True)
    result = fields.Decimal(required=True, as_string=True)
    reference_currency = fields.String(required=True)


class ErrorMessageSchema(Schema):
    message = fields.String(required=True)
