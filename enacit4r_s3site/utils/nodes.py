from bisect import bisect_right
from collections import defaultdict
from typing import Dict, List, Optional
from ..models.config import SiteConfig
from ..models.site import S3Object, SiteNode, SiteTree
from .keys import split_key, join_key, join_url, strip_slashes, quote_parts
import logging

ROOT_KEY = "/"


def is_folder_key(key: str, sorted_keys: List[str]) -> bool:
    """Tell whether a key is a folder, i.e. another listed key starts with it.

    The test is a plain string prefix test on the raw keys: "a" is a folder as soon as
    "ab" is listed, like "a/" is a folder when "a/b.txt" is listed.

    Args:
        key (str): The raw object key.
        sorted_keys (List[str]): All the listed keys, sorted and without duplicates.

    Returns:
        bool: True if the key is a folder, False if it is a file.
    """
    # keys starting with a prefix are contiguous, right after the prefix in sorted order
    index = bisect_right(sorted_keys, key)
    return index < len(sorted_keys) and sorted_keys[index].startswith(key)


def resolve_url(key_parts: List[str], is_folder: bool, config: SiteConfig) -> str:
    """Compute the URL under which a node is reachable.

    Folders are pages of the generated site, addressed relatively to the root path.
    Files are served by the storage, from the custom endpoint if any, otherwise from
    the AWS S3 virtual-hosted or path-style URL.

    Args:
        key_parts (List[str]): The key segments of the node.
        is_folder (bool): Whether the node is a folder.
        config (SiteConfig): The site configuration.

    Returns:
        str: The URL of the node.
    """
    path = quote_parts(key_parts)
    if is_folder:
        return "/" + join_url(config.root_path, path)
    if config.endpoint:
        return f"{config.endpoint.rstrip('/')}/{config.bucket}/{path}"
    if config.force_path_style:
        return f"https://s3-{config.region}.amazonaws.com/{config.bucket}/{path}"
    return f"https://{config.bucket}.s3-{config.region}.amazonaws.com/{path}"


def make_node(key: str, is_folder: bool, config: SiteConfig, s3_object: Optional[S3Object] = None) -> SiteNode:
    """Make a node from a key, deriving its depth, name, parent and URL.

    Args:
        key (str): The node key.
        is_folder (bool): Whether the node is a folder.
        config (SiteConfig): The site configuration.
        s3_object (S3Object, optional): The listed object, None for synthesized folders.

    Returns:
        SiteNode: The node, without children.
    """
    key_parts = split_key(key)
    file_name = key_parts[-1] if key_parts else ""
    return SiteNode(key=key,
                    key_parts=key_parts,
                    levels_deep=len(key_parts),
                    is_folder=is_folder,
                    is_hidden_file=not is_folder and file_name.startswith("."),
                    parent_key=join_key(key_parts[:-1]),
                    file_name=file_name,
                    url=resolve_url(key_parts, is_folder, config),
                    size=s3_object.size if s3_object and not is_folder else None,
                    last_modified=s3_object.last_modified if s3_object else None)


def make_root_node(config: SiteConfig) -> SiteNode:
    return make_node(ROOT_KEY, True, config)


def classify_objects(objects: List[S3Object], config: SiteConfig) -> List[SiteNode]:
    """Make one node per listed object, telling folders from files."""
    sorted_keys = sorted(set(obj.key for obj in objects))
    return [make_node(obj.key, is_folder_key(obj.key, sorted_keys), config, obj) for obj in objects]


def synthesize_folders(node: SiteNode, config: SiteConfig) -> List[SiteNode]:
    """Make the ancestor folders implied by a node key, deepest first, root excluded.

    Args:
        node (SiteNode): A node at depth N.
        config (SiteConfig): The site configuration.

    Returns:
        List[SiteNode]: The N-1 folder nodes at depths N-1 down to 1.
    """
    return [make_node(join_key(node.key_parts[:depth]), True, config)
            for depth in range(node.levels_deep - 1, 0, -1)]


def deduplicate(nodes: List[SiteNode]) -> List[SiteNode]:
    """Keep the first node of each key, keys compared without leading and trailing slashes."""
    seen = set()
    unique = []
    for node in nodes:
        normalized = strip_slashes(node.key) or ""
        if normalized in seen:
            continue
        seen.add(normalized)
        unique.append(node)
    return unique


def link_children(nodes: List[SiteNode]) -> List[SiteNode]:
    """Set the children of every folder node, in listing order.

    The root node collects the nodes of depth 1, other folders collect the nodes whose
    parent key matches their own key.
    """
    by_parent: Dict[str, List[SiteNode]] = defaultdict(list)
    for node in nodes:
        if not node.is_root:
            by_parent[strip_slashes(node.parent_key) or ""].append(node)
    for node in nodes:
        if not node.is_folder:
            continue
        if node.is_root:
            node.children = [child for child in nodes if child.levels_deep == 1]
        else:
            node.children = list(by_parent.get(strip_slashes(node.key), []))
    return nodes


class SiteTreeBuilder:
    """Rebuild the folder hierarchy of a bucket from the flat list of its object keys.
    """

    def __init__(self, config: SiteConfig):
        self.config = config
        self.objects: List[S3Object] = []

    def add_objects(self, objects: List[S3Object]):
        self.objects.extend(objects)
        return self

    def add_keys(self, keys: List[str]):
        """Add objects known by their key only.

        Args:
            keys (List[str]): The object keys.

        Returns:
            SiteTreeBuilder: The builder
        """
        return self.add_objects([S3Object(key=key) for key in keys])

    def build(self) -> SiteTree:
        """Classify the objects, synthesize the missing folders, deduplicate and link the nodes.

        Returns:
            SiteTree: The tree, with the root node first in its list of nodes.
        """
        nodes = [make_root_node(self.config)]
        for node in classify_objects(self.objects, self.config):
            nodes.append(node)
            nodes.extend(synthesize_folders(node, self.config))
        nodes = link_children(deduplicate(nodes))
        logging.debug(f"Site tree of {len(self.objects)} objects has {len(nodes)} nodes")
        return SiteTree(root=nodes[0], nodes=nodes)
