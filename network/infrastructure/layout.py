"""
Network layout derivation for the VPC.

Computes how many availability zones to span, which zones to use, the
public and private subnet CIDRs for each zone and the NAT gateway strategy
from a top-level CIDR block and a handful of sizing preferences. Everything
here is a pure function of its inputs.
"""

import enum
import ipaddress
import itertools
import logging
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

T = TypeVar("T")

AddressBlock = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

VALID_ZONE_COUNTS = (1, 2, 3, 4)

# zone count -> (prefix length addition, subnet index offsets)
SUBNET_LAYOUTS = {
    1: (1, (0,)),
    2: (2, (0, 1)),
    3: (3, (0, 1, 2)),
    4: (3, (0, 1, 2, 3)),
}


class NetworkLayoutError(ValueError):
    """Base class for layout derivation errors."""


class InvalidZoneCountError(NetworkLayoutError):
    """Zone count outside of the supported range."""


class InsufficientZonesError(NetworkLayoutError):
    """Fewer availability zones available than requested."""


class InvalidCidrError(NetworkLayoutError):
    """CIDR block can not be parsed or subdivided as requested."""


class ConflictingNatStrategyError(NetworkLayoutError):
    """Single and per-zone NAT gateways were both explicitly requested."""


class NatStrategy(str, enum.Enum):
    """NAT gateway placement."""

    SINGLE = "single"
    PER_ZONE = "per-zone"
    NONE = "none"


class SizingPreference(BaseModel):
    """High level sizing inputs. Explicit values win over derived ones."""

    model_config = ConfigDict(frozen=True)

    explicit_zone_count: int = Field(0, ge=0)
    high_availability: bool = False
    explicit_zones: Tuple[str, ...] = ()
    single_nat_gateway: Optional[bool] = None
    one_nat_gateway_per_az: Optional[bool] = None
    enable_nat_gateway: bool = True
    explicit_public_subnets: Tuple[str, ...] = ()
    explicit_private_subnets: Tuple[str, ...] = ()


class SubnetPlan(BaseModel):
    """Derived network layout, one public and one private subnet per zone."""

    model_config = ConfigDict(frozen=True)

    block: AddressBlock
    zones: Tuple[str, ...]
    public_subnets: Tuple[AddressBlock, ...]
    private_subnets: Tuple[AddressBlock, ...]
    nat_strategy: NatStrategy

    @property
    def nat_gateway_count(self) -> int:
        """Number of NAT gateways the strategy calls for."""
        if self.nat_strategy is NatStrategy.SINGLE:
            return 1
        if self.nat_strategy is NatStrategy.PER_ZONE:
            return len(self.zones)
        return 0

    def zone_for(self, index: int) -> str:
        """Zone of subnet `index`, wrapping around when subnets outnumber zones."""
        return self.zones[index % len(self.zones)]


def coalesce(explicit: Optional[T], derive: Callable[[], T]) -> T:
    """Return `explicit` if it is set, otherwise the result of `derive()`.

    `None` and falsy non-bool values (0, empty sequences) count as unset.
    Booleans are always set, so an explicit False is returned as is.
    """
    if isinstance(explicit, bool):
        return explicit
    if explicit is None or not explicit:
        return derive()
    return explicit


def parse_block(value: Union[str, AddressBlock]) -> AddressBlock:
    """Parse a CIDR string, raising InvalidCidrError on failure."""
    if not isinstance(value, (str, ipaddress.IPv4Network, ipaddress.IPv6Network)):
        raise InvalidCidrError(
            f"Invalid CIDR block {value!r}: expected a CIDR string or network"
        )
    try:
        return ipaddress.ip_network(value, strict=True)
    except (TypeError, ValueError) as e:
        raise InvalidCidrError(f"Invalid CIDR block {value!r}: {e}") from e


def resolve_zone_count(explicit_count: int, high_availability: bool) -> int:
    """Number of availability zones to span.

    An explicit count above zero is used unchanged, otherwise high
    availability spans three zones and everything else two.
    """
    if explicit_count < 0:
        raise InvalidZoneCountError(
            f"Zone count must not be negative, got {explicit_count}"
        )

    count = coalesce(explicit_count, lambda: 3 if high_availability else 2)
    if count not in VALID_ZONE_COUNTS:
        raise InvalidZoneCountError(
            f"Zone count must be one of {VALID_ZONE_COUNTS}, got {count}"
        )
    return count


def resolve_zones(
    explicit_zones: Sequence[str],
    available_zones: Sequence[str],
    count: int,
) -> List[str]:
    """Zones to place subnets in.

    Explicit zones are returned verbatim, their length is not checked
    against `count`. Otherwise the first `count` available zones in
    lexicographic order are used.
    """

    def derive() -> List[str]:
        if len(available_zones) < count:
            raise InsufficientZonesError(
                f"Requested {count} availability zones but only "
                f"{len(available_zones)} available: {list(available_zones)}"
            )
        return sorted(available_zones)[:count]

    return list(coalesce(explicit_zones, derive))


def subdivide(block: AddressBlock, addition: int, index: int) -> AddressBlock:
    """Return child `index` of `block` split into 2**addition equal parts."""
    new_prefix = block.prefixlen + addition
    if addition < 0 or new_prefix > block.max_prefixlen:
        raise InvalidCidrError(
            f"Can not add {addition} bits to {block}: "
            f"/{new_prefix} exceeds /{block.max_prefixlen}"
        )
    if not 0 <= index < 2**addition:
        raise InvalidCidrError(
            f"Subnet index {index} out of range for {block} split into "
            f"{2 ** addition} parts"
        )
    child_size = block.num_addresses >> addition
    first = int(block.network_address) + index * child_size
    return block.__class__((first, new_prefix))


def compute_subnets(
    block: AddressBlock, zone_count: int
) -> Tuple[List[AddressBlock], List[AddressBlock]]:
    """Partition `block` into one public and one private subnet per zone.

    Private subnets take the leading children of the subdivision and public
    subnets the ones directly after them, so the two never overlap.

    Returns:
        Tuple of (public, private) subnet lists.
    """
    if zone_count not in SUBNET_LAYOUTS:
        raise InvalidCidrError(
            f"No subnet layout for {zone_count} zones, "
            f"supported zone counts are {VALID_ZONE_COUNTS}"
        )

    addition, offsets = SUBNET_LAYOUTS[zone_count]
    private = [subdivide(block, addition, i) for i in offsets]
    public = [subdivide(block, addition, i + zone_count) for i in offsets]
    return public, private


def resolve_nat_strategy(
    explicit_single: Optional[bool],
    explicit_per_az: Optional[bool],
    high_availability: bool,
) -> NatStrategy:
    """NAT gateway strategy.

    An explicit single NAT gateway wins, then an explicit per zone setting,
    otherwise high availability gets one NAT gateway per zone and everything
    else a single one.
    """
    if explicit_single and explicit_per_az:
        raise ConflictingNatStrategyError(
            "single_nat_gateway and one_nat_gateway_per_az can not both be enabled"
        )

    if explicit_single:
        return NatStrategy.SINGLE

    per_zone = coalesce(explicit_per_az, lambda: high_availability)
    if per_zone:
        return NatStrategy.PER_ZONE
    if explicit_per_az is None:
        return NatStrategy.SINGLE
    return NatStrategy.NONE


def _explicit_subnets(
    block: AddressBlock, cidrs: Sequence[str]
) -> List[AddressBlock]:
    subnets = [parse_block(cidr) for cidr in cidrs]
    for subnet in subnets:
        if subnet.version != block.version or not subnet.subnet_of(block):
            raise InvalidCidrError(f"Subnet {subnet} is not within {block}")
    return subnets


def _check_disjoint(subnets: Sequence[AddressBlock]) -> None:
    for a, b in itertools.combinations(subnets, 2):
        if a.overlaps(b):
            raise InvalidCidrError(f"Subnets {a} and {b} overlap")


def derive_layout(
    cidr: Union[str, AddressBlock],
    preference: SizingPreference,
    available_zones: Sequence[str],
) -> SubnetPlan:
    """Derive the complete subnet plan for a VPC."""
    block = parse_block(cidr)
    zone_count = resolve_zone_count(
        preference.explicit_zone_count, preference.high_availability
    )
    zones = resolve_zones(preference.explicit_zones, available_zones, zone_count)

    public = coalesce(
        _explicit_subnets(block, preference.explicit_public_subnets),
        lambda: compute_subnets(block, zone_count)[0],
    )
    private = coalesce(
        _explicit_subnets(block, preference.explicit_private_subnets),
        lambda: compute_subnets(block, zone_count)[1],
    )
    _check_disjoint(public + private)

    if preference.enable_nat_gateway:
        nat_strategy = resolve_nat_strategy(
            preference.single_nat_gateway,
            preference.one_nat_gateway_per_az,
            preference.high_availability,
        )
    else:
        nat_strategy = NatStrategy.NONE

    plan = SubnetPlan(
        block=block,
        zones=tuple(zones),
        public_subnets=tuple(public),
        private_subnets=tuple(private),
        nat_strategy=nat_strategy,
    )
    logger.info(
        "Derived layout for %s: zones=%s public=%s private=%s nat=%s",
        block,
        ",".join(plan.zones),
        ",".join(str(s) for s in plan.public_subnets),
        ",".join(str(s) for s in plan.private_subnets),
        plan.nat_strategy.value,
    )
    return plan
