"""Device and filesystem classification tables.

Maps the raw type codes each platform reports (statfs magic numbers on
Linux, filesystem type names on macOS, drive types on Windows) to the
canonical filesystem names and device types used throughout dsk. Also
hosts the post-discovery rules that need the full mount record: loop
devices, bind mounts and the pseudo-mounts hidden by default.
"""

from types import MappingProxyType

from dsk.models.mount import DeviceType, Mount

# =============================================================================
# Linux statfs magic numbers
# =============================================================================

ADFS_SUPER_MAGIC = 0xADF5
AFFS_SUPER_MAGIC = 0xADFF
AFS_SUPER_MAGIC = 0x5346414F
AUTOFS_SUPER_MAGIC = 0x0187
BPF_FS_MAGIC = 0xCAFE4A11
BTRFS_SUPER_MAGIC = 0x9123683E
CGROUP_SUPER_MAGIC = 0x27E0EB
CGROUP2_SUPER_MAGIC = 0x63677270
CIFS_MAGIC_NUMBER = 0xFF534D42
CODA_SUPER_MAGIC = 0x73757245
CONFIGFS_MAGIC = 0x62656570
DEBUGFS_MAGIC = 0x64626720
DEVPTS_SUPER_MAGIC = 0x1CD1
ECRYPTFS_SUPER_MAGIC = 0xF15F
EFIVARFS_MAGIC = 0xDE5E81E4
EXT_SUPER_MAGIC = 0xEF53  # shared by ext2, ext3 and ext4
FUSE_SUPER_MAGIC = 0x65735546  # shared by fuse and fuseblk
FUSECTL_SUPER_MAGIC = 0x65735543
HFS_SUPER_MAGIC = 0x4244
HFSPLUS_SUPER_MAGIC = 0x482B
HUGETLBFS_MAGIC = 0x958458F6
ISOFS_SUPER_MAGIC = 0x9660
JFFS2_SUPER_MAGIC = 0x72B6
MQUEUE_MAGIC = 0x19800202
MSDOS_SUPER_MAGIC = 0x4D44
NCP_SUPER_MAGIC = 0x564C
NFS_SUPER_MAGIC = 0x6969
NTFS_SB_MAGIC = 0x5346544E
OVERLAYFS_SUPER_MAGIC = 0x794C7630
PROC_SUPER_MAGIC = 0x9FA0
PSTOREFS_MAGIC = 0x6165676C
RAMFS_MAGIC = 0x858458F6
REISERFS_SUPER_MAGIC = 0x52654973
SECURITYFS_SUPER_MAGIC = 0x73636673
SMB_SUPER_MAGIC = 0x517B
SMB2_MAGIC_NUMBER = 0xFE534D42
SQUASHFS_MAGIC = 0x73717368
SYSFS_MAGIC = 0x62656572
TMPFS_MAGIC = 0x01021994
TRACEFS_MAGIC = 0x74726163
XFS_SUPER_MAGIC = 0x58465342
ZFS_SUPER_MAGIC = 0x2FC12FC1

LINUX_FS_NAMES: MappingProxyType[int, str] = MappingProxyType(
    {
        ADFS_SUPER_MAGIC: "adfs",
        AFFS_SUPER_MAGIC: "affs",
        AFS_SUPER_MAGIC: "afs",
        AUTOFS_SUPER_MAGIC: "autofs",
        BPF_FS_MAGIC: "bpf",
        BTRFS_SUPER_MAGIC: "btrfs",
        CGROUP_SUPER_MAGIC: "cgroupfs",
        CGROUP2_SUPER_MAGIC: "cgroup2",
        CIFS_MAGIC_NUMBER: "cifs",
        CODA_SUPER_MAGIC: "coda",
        CONFIGFS_MAGIC: "configfs",
        DEBUGFS_MAGIC: "debugfs",
        DEVPTS_SUPER_MAGIC: "devpts",
        ECRYPTFS_SUPER_MAGIC: "ecryptfs",
        EFIVARFS_MAGIC: "efivarfs",
        EXT_SUPER_MAGIC: "ext2/ext3",
        FUSE_SUPER_MAGIC: "fuse",
        FUSECTL_SUPER_MAGIC: "fusectl",
        HFS_SUPER_MAGIC: "hfs",
        HFSPLUS_SUPER_MAGIC: "hfsplus",
        HUGETLBFS_MAGIC: "hugetlbfs",
        ISOFS_SUPER_MAGIC: "isofs",
        JFFS2_SUPER_MAGIC: "jffs2",
        MQUEUE_MAGIC: "mqueue",
        MSDOS_SUPER_MAGIC: "msdos",
        NCP_SUPER_MAGIC: "novell",
        NFS_SUPER_MAGIC: "nfs",
        NTFS_SB_MAGIC: "ntfs",
        OVERLAYFS_SUPER_MAGIC: "overlayfs",
        PROC_SUPER_MAGIC: "proc",
        PSTOREFS_MAGIC: "pstorefs",
        RAMFS_MAGIC: "ramfs",
        REISERFS_SUPER_MAGIC: "reiserfs",
        SECURITYFS_SUPER_MAGIC: "securityfs",
        SMB_SUPER_MAGIC: "smb",
        SMB2_MAGIC_NUMBER: "smb2",
        SQUASHFS_MAGIC: "squashfs",
        SYSFS_MAGIC: "sysfs",
        TMPFS_MAGIC: "tmpfs",
        TRACEFS_MAGIC: "tracefs",
        XFS_SUPER_MAGIC: "xfs",
        ZFS_SUPER_MAGIC: "zfs",
    }
)

LINUX_NETWORK_MAGICS: frozenset[int] = frozenset(
    {
        CIFS_MAGIC_NUMBER,
        NFS_SUPER_MAGIC,
        SMB_SUPER_MAGIC,
        SMB2_MAGIC_NUMBER,
    }
)

LINUX_SPECIAL_MAGICS: frozenset[int] = frozenset(
    {
        AUTOFS_SUPER_MAGIC,
        BPF_FS_MAGIC,
        CGROUP_SUPER_MAGIC,
        CGROUP2_SUPER_MAGIC,
        CONFIGFS_MAGIC,
        DEBUGFS_MAGIC,
        DEVPTS_SUPER_MAGIC,
        EFIVARFS_MAGIC,
        FUSECTL_SUPER_MAGIC,
        HUGETLBFS_MAGIC,
        MQUEUE_MAGIC,
        PROC_SUPER_MAGIC,
        PSTOREFS_MAGIC,
        SECURITYFS_SUPER_MAGIC,
        SYSFS_MAGIC,
        TMPFS_MAGIC,
        TRACEFS_MAGIC,
    }
)

LINUX_FUSE_MAGICS: frozenset[int] = frozenset({FUSE_SUPER_MAGIC})


def linux_fs_name(magic: int) -> str:
    """Return the filesystem name for a statfs magic number.

    The magic is masked to 32 bits first, since ``f_type`` is a signed
    word and some magics come back negative on 32-bit platforms.

    Returns:
        Canonical name, or an empty string for unknown magics.
    """
    return LINUX_FS_NAMES.get(magic & 0xFFFFFFFF, "")


def linux_device_type(magic: int) -> DeviceType:
    """Classify a Linux mount by its statfs magic number."""
    magic &= 0xFFFFFFFF
    if magic in LINUX_NETWORK_MAGICS:
        return DeviceType.NETWORK
    if magic in LINUX_SPECIAL_MAGICS:
        return DeviceType.SPECIAL
    if magic in LINUX_FUSE_MAGICS:
        return DeviceType.FUSE
    return DeviceType.LOCAL


# =============================================================================
# macOS filesystem type names
# =============================================================================

DARWIN_NETWORK_FS: frozenset[str] = frozenset({"nfs", "smbfs", "afpfs", "webdav", "cifs", "ftp"})

DARWIN_SPECIAL_FS: frozenset[str] = frozenset({"devfs", "autofs", "nullfs", "fdesc"})


def darwin_device_type(fs_type: str) -> DeviceType:
    """Classify a macOS mount by its filesystem type name (case-insensitive)."""
    name = fs_type.lower()
    if name in DARWIN_NETWORK_FS:
        return DeviceType.NETWORK
    if name in DARWIN_SPECIAL_FS:
        return DeviceType.SPECIAL
    if "fuse" in name:
        return DeviceType.FUSE
    return DeviceType.LOCAL


# =============================================================================
# Windows drive types (GetDriveTypeW)
# =============================================================================

DRIVE_UNKNOWN = 0
DRIVE_NO_ROOT_DIR = 1
DRIVE_REMOVABLE = 2
DRIVE_FIXED = 3
DRIVE_REMOTE = 4
DRIVE_CDROM = 5
DRIVE_RAMDISK = 6


def windows_device_type(drive_type: int) -> DeviceType:
    """Classify a Windows volume by its drive type."""
    if drive_type == DRIVE_REMOTE:
        return DeviceType.NETWORK
    if drive_type in (DRIVE_RAMDISK, DRIVE_CDROM):
        return DeviceType.SPECIAL
    return DeviceType.LOCAL


# =============================================================================
# Post-discovery rules
# =============================================================================

_HIDDEN_DEVICES: frozenset[str] = frozenset({"shm", "overlay"})


def is_loop_device(mount: Mount) -> bool:
    """Check whether the mount is backed by a loop device."""
    return mount.device.startswith("/dev/loop")


def is_bind_mount(mount: Mount) -> bool:
    """Check whether the mount options carry the ``bind`` token."""
    return "bind" in mount.option_tokens


def is_hidden_by_default(mount: Mount) -> bool:
    """Check whether the mount is a pseudo-mount hidden unless ``--all``.

    Covers shared-memory and overlay devices, autofs trigger mounts and
    squashfs images mounted under /snap. Independent of device type.
    """
    if mount.device in _HIDDEN_DEVICES:
        return True
    if mount.fs_type == "autofs":
        return True
    return mount.fs_type == "squashfs" and mount.mountpoint.startswith("/snap")


def effective_device_type(mount: Mount) -> DeviceType:
    """Return the device type after bind/loop refinement.

    Bind mounts take priority over loop devices; everything else keeps
    the type assigned during discovery.
    """
    if is_bind_mount(mount):
        return DeviceType.BIND
    if is_loop_device(mount):
        return DeviceType.LOOP
    return mount.device_type
