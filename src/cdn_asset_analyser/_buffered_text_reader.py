import pathlib


class BufferedTextReader:
    def __init__(self, *, file_path: str | pathlib.Path, maximum_buffer_size_in_bytes: int = 10**8):
        """
        Lazily read the lines of a text file using buffers of a specified size.

        Each iteration yields a list of complete lines; a line is never split across two buffers.

        Parameters
        ----------
        file_path : string or pathlib.Path
            The path to the text file to be read.
        maximum_buffer_size_in_bytes : int, default: 100 MB
            The theoretical maximum amount of RAM (in bytes) to be used by each buffer iteration.
        """
        self.file_path = pathlib.Path(file_path)
        self.maximum_buffer_size_in_bytes = maximum_buffer_size_in_bytes

        # The actual amount of bytes to read per iteration is 3x less than theoretical maximum usage
        # due to decoding and handling
        self.buffer_size_in_bytes = max(int(maximum_buffer_size_in_bytes / 3), 1)

        self.total_file_size = self.file_path.stat().st_size
        self.offset = 0

    def __iter__(self):
        return self

    def __len__(self) -> int:
        """The upper bound on the number of buffers needed to read the whole file."""
        return -(-self.total_file_size // self.buffer_size_in_bytes)

    def __next__(self) -> list[str]:
        """Retrieve the next buffer of lines from the file, or raise StopIteration if the file is exhausted."""
        if self.offset >= self.total_file_size:
            raise StopIteration

        with open(file=self.file_path, mode="rb", buffering=0) as io:
            io.seek(self.offset)
            intermediate_bytes = io.read(self.buffer_size_in_bytes)

        # Check if we are at the end of the file
        if len(intermediate_bytes) < self.buffer_size_in_bytes or (
            self.offset + len(intermediate_bytes) >= self.total_file_size
        ):
            self.offset = self.total_file_size
            return intermediate_bytes.decode(encoding="utf-8", errors="replace").splitlines()

        last_line_break = intermediate_bytes.rfind(b"\n")
        if last_line_break == -1:
            raise ValueError(
                f"BufferedTextReader encountered a line at offset {self.offset} of '{self.file_path}' that exceeds "
                "the buffer size! Try increasing the `maximum_buffer_size_in_bytes` to account for this line."
            )

        # Only hand out complete lines; the remainder is read again on the next iteration
        complete_bytes = intermediate_bytes[: last_line_break + 1]
        self.offset += len(complete_bytes)

        return complete_bytes.decode(encoding="utf-8", errors="replace").splitlines()
