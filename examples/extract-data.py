# This is a simple program to show how to use pyvcdkit to extract the data of
# one file from a UDF image.

# Import standard python modules.
import sys

# Import pyvcdkit itself.
import pyvcdkit

# Check that there are enough command-line arguments.
if len(sys.argv) != 3:
    print('Usage: %s <image> <path>' % (sys.argv[0]))
    sys.exit(1)

# Open up the image from a file object that we own.
with open(sys.argv[1], 'rb') as fp:
    reader = pyvcdkit.open_image(fp)

    # Find the file by its slash-separated path from the root directory.
    file_info = reader.lookup(sys.argv[2])

    # open_file() returns a read-only, seekable file object over the contents
    # of the file, wherever they are stored on the image.
    with reader.open_file(file_info) as infp:
        sys.stdout.buffer.write(infp.read())

    reader.close()
