# Helpers shared by the integration tests.  UDFImageBuilder lays out a small
# UDF image in memory, bottom-up: files and directories are added first, and
# build() then writes the volume structures that point at them.

import os
import struct
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

import pyvcdkit.udf

SECTOR_SIZE = 2048
PARTITION_START = 260
MAIN_VDS_SECTOR = 32


def make_tag(ident, body, location=0, version=2):
    crc = pyvcdkit.udf.crc_ccitt(body)
    tag = struct.pack('<HHBBHHHL', ident, version, 0, 0, 0, crc, len(body), location)
    csum = (sum(tag[0:4]) + sum(tag[5:16])) % 256
    return tag[:4] + bytes([csum]) + tag[5:] + body


def make_dstring(text, size):
    if not text:
        return b'\x00' * size
    encoded = b'\x08' + text.encode('latin-1')
    return encoded + b'\x00' * (size - 1 - len(encoded)) + bytes([len(encoded)])


def make_timestamp(year=0, month=0, day=0, hour=0, minute=0, second=0):
    return struct.pack('<HHBBBBB3s', 0, year, month, day, hour, minute, second, b'\x00' * 3)


def make_entity(ident=b''):
    return struct.pack('<B23s8s', 0, ident, b'')


def make_charspec():
    return struct.pack('<B63s', 0, b'OSTA Compressed Unicode')


def make_extent(length, location):
    return struct.pack('<LL', length, location)


def make_long_ad(length, block, part_ref=0):
    return struct.pack('<LLH6s', length, block, part_ref, b'\x00' * 6)


def make_cdrom_descriptor(ident):
    return (b'\x00' + ident + b'\x01').ljust(SECTOR_SIZE, b'\x00')


def make_avdp(main_location, main_length=4 * SECTOR_SIZE):
    body = make_extent(main_length, main_location) + make_extent(main_length, main_location) + b'\x00' * 480
    return make_tag(pyvcdkit.udf.TAG_ANCHOR_VOLUME_DESCRIPTOR_POINTER, body, 256)


def make_pvd(location, vol_ident='TESTVOL'):
    body = struct.pack('<LL', 0, 0) + make_dstring(vol_ident, 32)
    body += struct.pack('<HHHHLL', 1, 1, 2, 2, 1, 1)
    body += make_dstring(vol_ident, 128)
    body += make_charspec() + make_charspec()
    body += make_extent(0, 0) + make_extent(0, 0)
    body += make_entity(b'*pyvcdkit')
    body += make_timestamp(2023, 5, 17, 10, 20, 30)
    body += make_entity(b'*pyvcdkit')
    body += b'\x00' * 64
    body += struct.pack('<LH', 0, 0) + b'\x00' * 22
    return make_tag(pyvcdkit.udf.TAG_PRIMARY_VOLUME_DESCRIPTOR, body, location)


def make_partition(location, start=PARTITION_START, length=100):
    body = struct.pack('<LHH', 1, 1, 0)
    body += make_entity(b'+NSR02')
    body += b'\x00' * 128
    body += struct.pack('<LLL', 1, start, length)
    body += make_entity(b'*pyvcdkit')
    body += b'\x00' * 128 + b'\x00' * 156
    return make_tag(pyvcdkit.udf.TAG_PARTITION_DESCRIPTOR, body, location)


def make_lvd(location, lv_ident='TESTVOL', block_size=SECTOR_SIZE,
             partition_map=b'\x01\x06\x01\x00\x00\x00'):
    body = struct.pack('<L', 2) + make_charspec()
    body += make_dstring(lv_ident, 128)
    body += struct.pack('<L', block_size)
    body += make_entity(pyvcdkit.udf.ENTITY_IDENTIFIER_OSTA_COMPLIANT)
    body += make_long_ad(SECTOR_SIZE, 0)
    body += struct.pack('<LL', len(partition_map), 1)
    body += make_entity(b'*pyvcdkit')
    body += b'\x00' * 128
    body += make_extent(0, 0)
    body += partition_map
    return make_tag(pyvcdkit.udf.TAG_LOGICAL_VOLUME_DESCRIPTOR, body, location)


def make_terminating(location):
    return make_tag(pyvcdkit.udf.TAG_TERMINATING_DESCRIPTOR, b'\x00' * 496, location)


def make_fsd(location, root_block, lv_ident='TESTVOL'):
    body = make_timestamp(2023, 5, 17, 10, 20, 30)
    body += struct.pack('<HHLLLL', 3, 3, 1, 1, 0, 0)
    body += make_charspec() + make_dstring(lv_ident, 128)
    body += make_charspec() + make_dstring('FS', 32)
    body += make_dstring('', 32) + make_dstring('', 32)
    body += make_long_ad(SECTOR_SIZE, root_block)
    body += make_entity(pyvcdkit.udf.ENTITY_IDENTIFIER_OSTA_COMPLIANT)
    body += make_long_ad(0, 0) + make_long_ad(0, 0)
    body += b'\x00' * 32
    return make_tag(pyvcdkit.udf.TAG_FILE_SET_DESCRIPTOR, body, location)


def make_file_entry(location, file_type, info_len, alloc_descs, ad_flags=0,
                    uid=1000, gid=100, permissions=0x14a5, link_count=1,
                    mod_time=(2023, 5, 17, 10, 20, 30), extended_attrs=b''):
    icb_tag = struct.pack('<LHHHBB', 0, 4, 0, 1, 0, file_type)
    icb_tag += struct.pack('<LH', 0, 0) + struct.pack('<H', ad_flags)
    body = icb_tag
    body += struct.pack('<LLLHBBLQQ', uid, gid, permissions, link_count, 0, 0, 0,
                        info_len, 0)
    body += make_timestamp(*mod_time) + make_timestamp(*mod_time) + make_timestamp(*mod_time)
    body += struct.pack('<L', 1)
    body += make_long_ad(0, 0)
    body += make_entity(b'*pyvcdkit')
    body += struct.pack('<QLL', 0, len(extended_attrs), len(alloc_descs))
    body += extended_attrs + alloc_descs
    return make_tag(pyvcdkit.udf.TAG_FILE_ENTRY, body, location)


def make_fid(name, icb_block, characteristics=0, encoding=8, impl_use=b''):
    if name:
        if encoding == 16:
            fi = b'\x10' + name.encode('utf-16_be')
        else:
            fi = bytes([encoding]) + name.encode('latin-1')
    else:
        fi = b''
    body = struct.pack('<HBB', 1, characteristics, len(fi))
    body += make_long_ad(SECTOR_SIZE, icb_block)
    body += struct.pack('<H', len(impl_use)) + impl_use + fi
    size = 16 + len(body)
    body += b'\x00' * ((4 * ((size + 3) // 4)) - size)
    return make_tag(pyvcdkit.udf.TAG_FILE_IDENTIFIER_DESCRIPTOR, body, 0)


class UDFImageBuilder(object):
    def __init__(self, nsr=b'NSR02', lv_ident='TESTVOL', lvd=None):
        self.nsr = nsr
        self.lv_ident = lv_ident
        self.lvd = lvd
        self.blocks = {}
        self.next_block = 1
        self.root_block = None

    def alloc(self, count=1):
        block = self.next_block
        self.next_block += count
        return block

    def put(self, block, data):
        for i in range(0, max(len(data), 1), SECTOR_SIZE):
            self.blocks[block + i // SECTOR_SIZE] = data[i:i + SECTOR_SIZE]

    def _put_extents(self, chunks, long_ad):
        alloc_descs = b''
        for chunk in chunks:
            block = self.alloc(max((len(chunk) + SECTOR_SIZE - 1) // SECTOR_SIZE, 1))
            self.put(block, chunk)
            # Leave a hole so that consecutive extents are never contiguous.
            self.alloc()
            if long_ad:
                alloc_descs += make_long_ad(len(chunk), block)
            else:
                alloc_descs += make_extent(len(chunk), block)
        return alloc_descs

    def add_file(self, data, chunk_sizes=None, long_ad=False, inline=False, **kwargs):
        fe_block = self.alloc()
        if inline:
            fe = make_file_entry(fe_block, 5, len(data), data, ad_flags=3, **kwargs)
        else:
            chunks = []
            if chunk_sizes is None:
                chunk_sizes = [len(data)]
            offset = 0
            for size in chunk_sizes:
                chunks.append(data[offset:offset + size])
                offset += size
            alloc_descs = self._put_extents(chunks, long_ad)
            fe = make_file_entry(fe_block, 5, len(data), alloc_descs,
                                 ad_flags=1 if long_ad else 0, **kwargs)
        self.put(fe_block, fe)
        return fe_block

    def add_dir(self, entries, parent_block=0, chunked=False, inline=False, **kwargs):
        # entries is a list of (name, fe_block, characteristics) tuples, or
        # raw FID bytes.
        fe_block = self.alloc()
        fids = [make_fid('', parent_block, pyvcdkit.udf.FILE_CHARACTERISTIC_DIRECTORY | pyvcdkit.udf.FILE_CHARACTERISTIC_PARENT)]
        for entry in entries:
            if isinstance(entry, bytes):
                fids.append(entry)
            else:
                (name, block, characteristics) = entry
                fids.append(make_fid(name, block, characteristics))

        if inline:
            data = b''.join(fids)
            fe = make_file_entry(fe_block, 4, len(data), data, ad_flags=3, **kwargs)
        else:
            if chunked:
                chunks = fids
            else:
                chunks = [b''.join(fids)]
            alloc_descs = self._put_extents(chunks, False)
            fe = make_file_entry(fe_block, 4, sum([len(c) for c in chunks]),
                                 alloc_descs, **kwargs)
        self.put(fe_block, fe)
        return fe_block

    def set_root(self, block):
        self.root_block = block

    def build(self):
        sectors = {}
        sectors[16] = make_cdrom_descriptor(b'BEA01')
        sectors[17] = make_cdrom_descriptor(self.nsr)
        sectors[18] = make_cdrom_descriptor(b'TEA01')
        sectors[MAIN_VDS_SECTOR] = make_pvd(MAIN_VDS_SECTOR, self.lv_ident)
        sectors[MAIN_VDS_SECTOR + 1] = make_partition(MAIN_VDS_SECTOR + 1)
        if self.lvd is None:
            sectors[MAIN_VDS_SECTOR + 2] = make_lvd(MAIN_VDS_SECTOR + 2, self.lv_ident)
        else:
            sectors[MAIN_VDS_SECTOR + 2] = self.lvd
        sectors[MAIN_VDS_SECTOR + 3] = make_terminating(MAIN_VDS_SECTOR + 3)
        sectors[256] = make_avdp(MAIN_VDS_SECTOR)
        sectors[PARTITION_START] = make_fsd(0, self.root_block, self.lv_ident)
        for block, data in self.blocks.items():
            sectors[PARTITION_START + block] = data

        total = max(sectors.keys()) + 1
        out = bytearray(total * SECTOR_SIZE)
        for sector, data in sectors.items():
            out[sector * SECTOR_SIZE:sector * SECTOR_SIZE + len(data)] = data
        return bytes(out)


def build_simple_image():
    # /
    # |-- hello.txt
    # |-- empty
    # `-- sub
    #     |-- inner.bin
    #     `-- deeper
    #         `-- leaf.txt
    builder = UDFImageBuilder()
    hello = builder.add_file(b'hello world\n')
    leaf = builder.add_file(b'leaf contents\n')
    deeper = builder.add_dir([('leaf.txt', leaf, 0)])
    inner = builder.add_file(b'\x00\x01\x02\x03' * 1000)
    sub = builder.add_dir([('inner.bin', inner, 0),
                           ('deeper', deeper, pyvcdkit.udf.FILE_CHARACTERISTIC_DIRECTORY)])
    empty = builder.add_file(b'')
    root = builder.add_dir([('hello.txt', hello, 0),
                            ('empty', empty, 0),
                            ('sub', sub, pyvcdkit.udf.FILE_CHARACTERISTIC_DIRECTORY)],
                           permissions=0x1ce7)
    builder.set_root(root)
    return builder.build()


class BytesReaderAt(object):
    def __init__(self, data):
        self.data = data
        self.reads = 0

    def read_at(self, offset, length):
        self.reads += 1
        return self.data[offset:offset + length]
