"""Registry of RPC methods exposed by a Golos node.

Entries are data: ``params`` lists parameter names in call order, and a
``name=<json>`` entry declares a default (``name=`` defaults to an empty
string). Entries declaring defaults must set ``has_default_values``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MethodDescriptor:
    """One RPC method as listed in the registry."""

    api: str
    method: str
    params: tuple[str, ...] = ()
    has_default_values: bool = False
    method_name: str | None = None

    @property
    def name(self) -> str:
        """Python-facing name of the bound call."""
        return self.method_name or self.method


def _m(
    api: str,
    method: str,
    *params: str,
    method_name: str | None = None,
) -> MethodDescriptor:
    return MethodDescriptor(
        api=api,
        method=method,
        params=params,
        has_default_values=any("=" in param for param in params),
        method_name=method_name,
    )


METHODS: tuple[MethodDescriptor, ...] = (
    # Subscriptions
    _m("database_api", "cancel_all_subscriptions"),
    # Tags
    _m("tags", "get_trending_tags", "after_tag", "limit=100"),
    _m("tags", "get_tags_used_by_author", "author"),
    _m("tags", "get_discussions_by_trending", "query"),
    _m("tags", "get_discussions_by_created", "query"),
    _m("tags", "get_discussions_by_active", "query"),
    _m("tags", "get_discussions_by_cashout", "query"),
    _m("tags", "get_discussions_by_payout", "query"),
    _m("tags", "get_discussions_by_votes", "query"),
    _m("tags", "get_discussions_by_children", "query"),
    _m("tags", "get_discussions_by_hot", "query"),
    _m("tags", "get_discussions_by_feed", "query"),
    _m("tags", "get_discussions_by_blog", "query"),
    _m("tags", "get_discussions_by_comments", "query"),
    _m("tags", "get_discussions_by_promoted", "query"),
    _m("tags", "get_discussions_by_author_before_date",
       "author", "start_permlink", "before_date", "limit", "vote_limit=10000"),
    _m("tags", "get_languages"),
    # Blocks and globals
    _m("database_api", "get_block_header", "block_num"),
    _m("database_api", "get_block", "block_num"),
    _m("operation_history", "get_ops_in_block", "block_num", "only_virtual=false"),
    _m("database_api", "get_config"),
    _m("database_api", "get_dynamic_global_properties"),
    _m("database_api", "get_chain_properties"),
    _m("database_api", "get_hardfork_version"),
    _m("database_api", "get_next_scheduled_hardfork"),
    _m("database_api", "get_reward_fund", "name"),
    # Keys
    _m("account_by_key", "get_key_references", "key"),
    # Accounts
    _m("database_api", "get_accounts", "account_names"),
    _m("database_api", "lookup_account_names", "account_names"),
    _m("database_api", "lookup_accounts", "lower_bound_name", "limit"),
    _m("database_api", "get_account_count"),
    _m("database_api", "get_owner_history", "account"),
    _m("database_api", "get_recovery_request", "account"),
    _m("database_api", "get_escrow", "from", "escrow_id"),
    _m("database_api", "get_withdraw_routes", "account", "withdraw_route_type"),
    _m("database_api", "get_account_bandwidth", "account", "bandwidth_type"),
    _m("database_api", "get_vesting_delegations",
       "account", "from", "limit=100", "type=\"delegated\""),
    _m("database_api", "get_expiring_vesting_delegations",
       "account", "from", "limit=100"),
    _m("account_history", "get_account_history", "account", "from", "limit"),
    # Market
    _m("market_history", "get_ticker"),
    _m("market_history", "get_volume"),
    _m("market_history", "get_order_book", "limit"),
    _m("market_history", "get_trade_history", "start", "end", "limit"),
    _m("market_history", "get_recent_trades", "limit"),
    _m("market_history", "get_market_history", "bucket_seconds", "start", "end"),
    _m("market_history", "get_market_history_buckets"),
    _m("market_history", "get_open_orders", "owner"),
    _m("database_api", "get_conversion_requests", "account_name"),
    _m("witness_api", "get_current_median_history_price"),
    _m("witness_api", "get_feed_history"),
    # Authority / validation
    _m("database_api", "get_transaction_hex", "trx"),
    _m("operation_history", "get_transaction", "trx_id"),
    _m("database_api", "get_required_signatures", "trx", "available_keys"),
    _m("database_api", "get_potential_signatures", "trx"),
    _m("database_api", "verify_authority", "trx"),
    _m("database_api", "verify_account_authority", "name_or_id", "signers"),
    # Votes and content
    _m("social_network", "get_active_votes", "author", "permlink", "vote_limit=10000"),
    _m("social_network", "get_account_votes", "voter", "from=0", "vote_limit=10000"),
    _m("social_network", "get_content", "author", "permlink", "vote_limit=10000"),
    _m("social_network", "get_content_replies",
       "parent", "parent_permlink", "vote_limit=10000"),
    _m("social_network", "get_replies_by_last_update",
       "start_author", "start_permlink", "limit", "vote_limit=10000"),
    # Witnesses
    _m("witness_api", "get_witnesses", "witness_ids"),
    _m("witness_api", "get_witness_by_account", "account_name"),
    _m("witness_api", "get_witnesses_by_vote", "from", "limit"),
    _m("witness_api", "lookup_witness_accounts", "lower_bound_name", "limit"),
    _m("witness_api", "get_witness_count"),
    _m("witness_api", "get_active_witnesses"),
    _m("witness_api", "get_miner_queue"),
    _m("witness_api", "get_witness_schedule"),
    # Follow
    _m("follow", "get_followers", "following", "start_follower", "follow_type", "limit"),
    _m("follow", "get_following", "follower", "start_following", "follow_type", "limit"),
    _m("follow", "get_follow_count", "account"),
    _m("follow", "get_feed_entries", "account", "entry_id", "limit"),
    _m("follow", "get_feed", "account", "entry_id", "limit"),
    _m("follow", "get_blog_entries", "account", "entry_id", "limit"),
    _m("follow", "get_blog", "account", "entry_id", "limit"),
    _m("follow", "get_reblogged_by", "author", "permlink"),
    _m("follow", "get_blog_authors", "blog_account"),
    # Broadcast
    _m("network_broadcast_api", "broadcast_transaction", "trx"),
    _m("network_broadcast_api", "broadcast_transaction_synchronous", "trx"),
    _m("network_broadcast_api", "broadcast_block", "b"),
    # Private messages
    _m("private_message", "get_inbox", "to", "newest", "limit", "offset"),
    _m("private_message", "get_outbox", "from", "newest", "limit", "offset"),
    # Login
    _m("login_api", "login", "username", "password"),
    _m("login_api", "get_api_by_name", "database_api"),
    _m("login_api", "get_version"),
)
