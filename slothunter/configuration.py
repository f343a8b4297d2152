# ====================================================================== #
# slothunter/configuration.py                                            #
# The operator's YAML configuration: load, validate, freeze.             #
# ====================================================================== #
from __future__ import annotations

from dataclasses import dataclass, field
from email.utils import parseaddr
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from substrateinterface import Keypair, KeypairType

from slothunter.config import CONFIG_PATH, LEASE_PERIODS_PER_AUCTION
from slothunter.errors import ConfigurationError
from slothunter.primitives import Token
from slothunter.utils.colors import ColoredLogger as clog
from slothunter.utils.helpers import hex_to_bytes, normalize_hex, safe_int
from slothunter.utils.leases import LeaseRange, leases_length

TEMPLATE_PATH = Path(__file__).resolve().with_name("configuration-template.yml")
DEFAULT_FILE_NAME = "config.yml"


class Network(Enum):
    POLKADOT = "polkadot"
    KUSAMA = "kusama"

    @property
    def graphql_endpoint(self) -> str:
        return {
            Network.POLKADOT: "https://polkadot.explorer.subsquid.io/graphql",
            Network.KUSAMA: "https://kusama.explorer.subsquid.io/graphql",
        }[self]

    @property
    def node_endpoint(self) -> str:
        return {
            Network.POLKADOT: "wss://rpc.polkadot.io:443",
            Network.KUSAMA: "wss://kusama-rpc.polkadot.io:443",
        }[self]

    @property
    def token(self) -> Token:
        return {
            Network.POLKADOT: Token(symbol="DOT", decimals=10),
            Network.KUSAMA: Token(symbol="KSM", decimals=12),
        }[self]

    @property
    def ss58_format(self) -> int:
        return {Network.POLKADOT: 0, Network.KUSAMA: 2}[self]


class BlockSubscriptionMode(Enum):
    BEST = "best"
    FINALIZED = "finalized"


class BidType(Enum):
    SELF_FUNDED = "self-funded"
    CROWDLOAN = "crowdloan"

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True, frozen=True)
class Bid:
    para_id: int
    leases: LeaseRange
    watch_only: bool
    type: BidType
    real: str
    delegate: Keypair
    upper_limit: int
    increment: int

    @property
    def is_self_funded(self) -> bool:
        return self.type is BidType.SELF_FUNDED

    def can_spend(self, value: int) -> bool:
        return self.upper_limit >= value


@dataclass(slots=True, frozen=True)
class Sender:
    username: str
    password: str
    smtp: str

    @property
    def email(self) -> str:
        return parseaddr(self.username)[1]


@dataclass(slots=True, frozen=True)
class Mail:
    sender: Sender
    receivers: Tuple[str, ...]


@dataclass(slots=True, frozen=True)
class Notification:
    mail: Optional[Mail] = None
    webhooks: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(slots=True, frozen=True)
class Configuration:
    network: Network
    graphql_endpoint: str
    node_endpoint: str
    block_subscription_mode: BlockSubscriptionMode
    bid: Bid
    notification: Notification

    @property
    def token(self) -> Token:
        return self.network.token


# ------------------------------------------------------------------ #
#  Loading                                                           #
# ------------------------------------------------------------------ #


def resolve_path(path: Optional[str | Path] = None) -> Path:
    """
    A `.yml`/`.yaml` path is used as is; anything else is a directory that
    holds `config.yml`.  Missing directories are created.
    """
    p = Path(path or CONFIG_PATH).expanduser()
    if p.suffix in (".yml", ".yaml"):
        p.parent.mkdir(parents=True, exist_ok=True)
        return p
    p.mkdir(parents=True, exist_ok=True)
    return p / DEFAULT_FILE_NAME


def load_raw(path: Optional[str | Path] = None) -> Tuple[Path, Dict[str, Any]]:
    p = resolve_path(path)
    if not p.is_file():
        text = TEMPLATE_PATH.read_text()
        p.write_text(text)
        clog.warning(f"configuration not found, a template has been written to {p}")
    else:
        text = p.read_text()

    try:
        raw = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"{p} is not valid YAML: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{p} must contain a mapping")
    return p, raw


def load_configuration(path: Optional[str | Path] = None) -> Configuration:
    p, raw = load_raw(path)
    try:
        return configuration_from_dict(raw)
    except ConfigurationError as e:
        raise ConfigurationError(f"{p}: {e}") from e


def _enum(kind, value: Any, key: str):
    try:
        return kind(str(value).strip().lower())
    except ValueError:
        choices = "|".join(m.value for m in kind)
        raise ConfigurationError(f"`{key}` must be one of {choices}, got {value!r}") from None


def _balance(value: Any, key: str) -> int:
    v = safe_int(value)
    if v is None or v < 0:
        raise ConfigurationError(f"`{key}` must be a non-negative integer balance, got {value!r}")
    return v


def _leases(value: Any) -> LeaseRange:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ConfigurationError(f"`bid.leases` must be [first, last], got {value!r}")
    first, last = safe_int(value[0]), safe_int(value[1])
    if first is None or last is None or first < 0:
        raise ConfigurationError(f"`bid.leases` must hold lease period numbers, got {value!r}")
    leases = (first, last)
    if not 0 < leases_length(leases) <= LEASE_PERIODS_PER_AUCTION:
        raise ConfigurationError(
            f"`bid.leases` must be a non-inverted range of at most {LEASE_PERIODS_PER_AUCTION} "
            f"lease periods, got [{first}, {last}]"
        )
    return leases


def _public_key(value: Any) -> str:
    try:
        raw = hex_to_bytes(str(value))
    except ValueError as e:
        raise ConfigurationError(f"invalid public key, {e}") from e
    if len(raw) != 32:
        raise ConfigurationError(f"invalid public key, expected 32 bytes, got {len(raw)}")
    return normalize_hex(str(value))


def _delegate(value: Any) -> Keypair:
    try:
        seed = hex_to_bytes(str(value))
    except ValueError as e:
        raise ConfigurationError(f"invalid seed, {e}") from e
    if len(seed) != 32:
        raise ConfigurationError(f"invalid seed, expected 32 bytes, got {len(seed)}")
    return Keypair.create_from_seed(seed.hex(), crypto_type=KeypairType.SR25519)


def _mail(raw: Optional[Dict[str, Any]]) -> Optional[Mail]:
    if not raw:
        return None
    sender = raw.get("sender") or {}
    try:
        s = Sender(
            username=str(sender["username"]),
            password=str(sender["password"]),
            smtp=str(sender["smtp"]),
        )
    except KeyError as e:
        raise ConfigurationError(f"`notification.mail.sender` is missing {e}") from None
    if not s.email:
        raise ConfigurationError(f"invalid sender mailbox {s.username!r}")

    receivers: List[str] = []
    for r in raw.get("receivers") or []:
        if not parseaddr(str(r))[1]:
            raise ConfigurationError(f"invalid receiver mailbox {r!r}")
        receivers.append(str(r))
    return Mail(sender=s, receivers=tuple(receivers))


def configuration_from_dict(raw: Dict[str, Any]) -> Configuration:
    network = _enum(Network, raw.get("network", ""), "network")
    bid = raw.get("bid")
    if not isinstance(bid, dict):
        raise ConfigurationError("`bid` section is missing")

    try:
        para_id = int(bid["para-id"])
        parsed_bid = Bid(
            para_id=para_id,
            leases=_leases(bid["leases"]),
            watch_only=bool(bid.get("watch-only", False)),
            type=_enum(BidType, bid.get("type", "self-funded"), "bid.type"),
            real=_public_key(bid["real"]),
            delegate=_delegate(bid["delegate"]),
            upper_limit=_balance(bid["upper-limit"], "bid.upper-limit"),
            increment=_balance(bid["increment"], "bid.increment"),
        )
    except KeyError as e:
        raise ConfigurationError(f"`bid` is missing {e}") from None
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"invalid `bid` section: {e}") from e

    notification = raw.get("notification") or {}
    webhooks = tuple(str(u) for u in (notification.get("webhooks") or []))

    return Configuration(
        network=network,
        graphql_endpoint=str(raw.get("graphql-endpoint") or network.graphql_endpoint),
        node_endpoint=str(raw.get("node-endpoint") or network.node_endpoint),
        block_subscription_mode=_enum(
            BlockSubscriptionMode, raw.get("block-subscription-mode", "finalized"), "block-subscription-mode"
        ),
        bid=parsed_bid,
        notification=Notification(mail=_mail(notification.get("mail")), webhooks=webhooks),
    )
